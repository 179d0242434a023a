"""
Database Schemas for the Food Ordering System

Each Pydantic model below describes one MongoDB collection:
User -> "users", FoodItem -> "foods", Order -> "orders".
Enum and range constraints live here, so a document that would violate them
is rejected before it reaches the store.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator


def _now() -> datetime:
    return datetime.now(timezone.utc)


class User(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    email: Optional[str] = None
    name: Optional[str] = None
    role: Optional[Literal["admin", "superuser", "user"]] = None


class FoodItem(BaseModel):
    """Shape of the externally populated "foods" collection; this service only reads it."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    image: Optional[str] = Field(None, description="Image URL or reference")
    category: Optional[Literal["veg", "non-veg", "dessert"]] = None


class Feedback(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    rating: Optional[float] = Field(None, ge=1, le=5)
    image: Optional[str] = None
    textFileData: Optional[str] = None


class Order(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, coerce_numbers_to_str=True)

    foodId: Optional[ObjectId] = Field(None, description="Reference to foods _id")
    userId: Optional[ObjectId] = Field(None, description="Reference to users _id")
    orderId: Optional[str] = Field(None, description="Caller-supplied lookup key")
    createdAt: datetime = Field(default_factory=_now)
    # never refreshed after creation
    updatedAt: datetime = Field(default_factory=_now)
    status: Optional[str] = None
    addressId: Optional[str] = None
    paymentMode: Optional[Literal["cash", "card", "UPI"]] = None
    feedback: Optional[Feedback] = None
    invoiceId: Optional[str] = None
    paymentDetails: Optional[Dict[str, Any]] = Field(None, description="Opaque payment gateway response")

    @field_validator("foodId", "userId", mode="before")
    @classmethod
    def cast_object_id(cls, v):
        return to_object_id(v)


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Cast a wire value to ObjectId; raises ValueError when it is not one."""
    if value is None or isinstance(value, ObjectId):
        return value
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise ValueError(f"Invalid ObjectId: {value!r}")
    return ObjectId(value)
