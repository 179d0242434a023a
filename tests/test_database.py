from datetime import datetime

import mongomock
from bson import ObjectId

import database
from database import (
    FOODS, ORDERS, USERS, create_document, find_one_and_set, get_document_by_id, get_documents, serialize_doc,
)
from schemas import Order, User


def test_create_document_returns_stored_doc(db):
    doc = create_document(db, USERS, User(email="a@b.c", name="Ann", role="user"))
    assert ObjectId.is_valid(doc["_id"])
    assert doc["email"] == "a@b.c"
    assert db[USERS].count_documents({}) == 1


def test_create_document_omits_unset_fields(db):
    doc = create_document(db, ORDERS, Order(paymentMode="cash"))
    stored = db[ORDERS].find_one({"_id": ObjectId(doc["_id"])})
    assert "feedback" not in stored
    assert "paymentDetails" not in stored
    assert "invoiceId" not in stored


def test_get_documents_filter(db, foods):
    assert len(get_documents(db, FOODS)) == len(foods)
    desserts = get_documents(db, FOODS, {"category": "dessert"})
    assert [d["name"] for d in desserts] == ["Brownie"]


def test_get_document_by_id_missing(db):
    assert get_document_by_id(db, USERS, str(ObjectId())) is None


def test_find_one_and_set_keeps_updated_at(db):
    created = create_document(db, ORDERS, Order(orderId="o-1"))
    updated = find_one_and_set(db, ORDERS, {"orderId": "o-1"}, {"status": "x"})
    assert updated["status"] == "x"
    assert updated["updatedAt"] == created["updatedAt"]


def test_find_one_and_set_no_match(db):
    assert find_one_and_set(db, ORDERS, {"orderId": "nope"}, {"status": "x"}) is None


def test_find_one_and_set_without_fields_returns_match(db):
    create_document(db, ORDERS, Order(orderId="o-2"))
    doc = find_one_and_set(db, ORDERS, {"orderId": "o-2"}, {})
    assert doc["orderId"] == "o-2"


def test_serialize_doc():
    oid, ref = ObjectId(), ObjectId()
    when = datetime(2024, 1, 2, 3, 4, 5)
    doc = serialize_doc({"_id": oid, "userId": ref, "createdAt": when, "paymentDetails": {"ids": [ref]}})
    assert doc == {
        "_id": str(oid),
        "userId": str(ref),
        "createdAt": when.isoformat(),
        "paymentDetails": {"ids": [str(ref)]},
    }
    assert serialize_doc(None) is None


def test_connect_bounds_server_selection(monkeypatch):
    seen = {}

    def fake_client(url, **kwargs):
        seen["url"] = url
        seen.update(kwargs)
        return mongomock.MongoClient()

    monkeypatch.setattr(database, "MongoClient", fake_client)
    monkeypatch.setenv("DATABASE_TIMEOUT_MS", "1500")
    client, db = database.connect("mongodb://example:27017", "Orders")
    assert seen == {"url": "mongodb://example:27017", "serverSelectionTimeoutMS": 1500}
    assert db.name == "Orders"
