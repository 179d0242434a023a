from typing import Generator

import mongomock
import pytest
from fastapi.testclient import TestClient

from database import FOODS
from main import create_app


@pytest.fixture(scope="function")
def db() -> Generator:
    # Fresh in-memory MongoDB per test
    client = mongomock.MongoClient()
    yield client["Food"]
    client.close()


@pytest.fixture(scope="function")
def client(db):
    app = create_app(database=db)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def foods(db):
    items = [
        {"name": "Pizza", "description": "Cheese", "price": 9.5, "image": "pizza.png", "category": "veg"},
        {"name": "pizza roll", "description": "Rolled", "price": 4.0, "image": "roll.png", "category": "veg"},
        {"name": "Chicken Wings", "description": "Spicy", "price": 7.25, "image": "wings.png", "category": "non-veg"},
        {"name": "Brownie", "description": "Chocolate", "price": 3.0, "image": "brownie.png", "category": "dessert"},
    ]
    db[FOODS].insert_many([dict(i) for i in items])
    return items
