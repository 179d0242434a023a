"""
Database Helper Functions

MongoDB helpers used by the API endpoints. The database handle is never a
module global: build one with ``connect()`` (or hand in a test double) and
pass it to the helpers explicitly.
"""

import logging
import os
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from bson import ObjectId
from dotenv import load_dotenv
from pydantic import BaseModel
from pymongo import MongoClient, ReturnDocument
from pymongo.database import Database

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "mongodb://0.0.0.0:27017"
DEFAULT_DATABASE_NAME = "Food"
DEFAULT_TIMEOUT_MS = 5000

USERS = "users"
FOODS = "foods"
ORDERS = "orders"


def connect(database_url: Optional[str] = None, database_name: Optional[str] = None) -> Tuple[MongoClient, Database]:
    """Create the client and select the database.

    The client connects lazily; a ping is issued so that an unreachable
    server is reported in the log at startup. It is not treated as fatal.
    Server selection gives up after DATABASE_TIMEOUT_MS milliseconds.
    """
    url = database_url or os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
    name = database_name or os.getenv("DATABASE_NAME", DEFAULT_DATABASE_NAME)
    timeout_ms = int(os.getenv("DATABASE_TIMEOUT_MS", DEFAULT_TIMEOUT_MS))
    client = MongoClient(url, serverSelectionTimeoutMS=timeout_ms)
    try:
        client.admin.command("ping")
        logger.info("connected to mongodb")
    except Exception:
        logger.exception("mongodb connection error")
    return client, client[name]


def _to_dict(data: Union[BaseModel, dict]) -> dict:
    if isinstance(data, BaseModel):
        return data.model_dump(exclude_none=True)
    return {k: v for k, v in dict(data).items() if v is not None}


# CRUD helpers

def create_document(db: Database, collection_name: str, data: Union[BaseModel, dict]) -> dict:
    """Insert a document and return it as stored, ``_id`` included."""
    payload = _to_dict(data)
    result = db[collection_name].insert_one(payload)
    return serialize_doc(db[collection_name].find_one({"_id": result.inserted_id}))


def get_documents(db: Database, collection_name: str, filter_dict: Optional[dict] = None) -> List[dict]:
    cursor = db[collection_name].find(filter_dict or {})
    return [serialize_doc(doc) for doc in cursor]


def get_document_by_id(db: Database, collection_name: str, _id: str) -> Optional[dict]:
    doc = db[collection_name].find_one({"_id": ObjectId(_id)})
    return serialize_doc(doc)


def find_one_and_set(db: Database, collection_name: str, filter_dict: dict, fields: Dict[str, Any]) -> Optional[dict]:
    """Overwrite ``fields`` on the first match and return the updated document.

    ``updatedAt`` is left alone. With nothing to set the first match is
    returned unchanged.
    """
    if not fields:
        return serialize_doc(db[collection_name].find_one(filter_dict))
    doc = db[collection_name].find_one_and_update(
        filter_dict,
        {"$set": fields},
        return_document=ReturnDocument.AFTER,
    )
    return serialize_doc(doc)


# Utility

def _serialize_value(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _serialize_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_serialize_value(v) for v in value]
    return value


def serialize_doc(doc: Optional[dict]) -> Optional[dict]:
    if not doc:
        return None
    # ObjectIds (including references) become strings, datetimes ISO-8601
    return {k: _serialize_value(v) for k, v in doc.items()}
