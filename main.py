import logging
import os
import re
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pymongo.database import Database

from database import (
    FOODS, ORDERS, USERS, connect, create_document, find_one_and_set, get_document_by_id, get_documents,
)
from schemas import Feedback, Order, User, to_object_id

logger = logging.getLogger(__name__)

ERROR_BODY = {"error": "Internal Server Error"}


class InternalServerError(Exception):
    """Any failure inside a handler; always rendered as a generic 500."""


# ============ Request bodies (loose; constraints are enforced by schemas.py) ==========
class LooseBody(BaseModel):
    # numbers sent for string fields are stored as their string form
    model_config = ConfigDict(coerce_numbers_to_str=True)


class RegisterRequest(LooseBody):
    email: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None


class PlaceOrderRequest(LooseBody):
    foodId: Optional[str] = None
    userId: Optional[str] = None
    addressId: Optional[str] = None
    paymentMode: Optional[str] = None
    orderId: Optional[str] = None


class FeedbackRequest(LooseBody):
    rating: Optional[float] = None
    image: Optional[str] = None
    textFileData: Optional[str] = None


class PaymentRequest(LooseBody):
    orderId: Optional[str] = None
    userId: Optional[str] = None
    paymentDetails: Optional[Dict[str, Any]] = None


def get_db(request: Request) -> Database:
    return request.app.state.db


def create_app(database: Optional[Database] = None) -> FastAPI:
    """Build the application.

    When ``database`` is given it is used as-is and never closed; otherwise
    a client is created from the environment on startup.
    """
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = None
        if database is None:
            client, app.state.db = connect()
        else:
            app.state.db = database
        yield
        if client is not None:
            client.close()

    app = FastAPI(title="Food Ordering API", version="1.0.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InternalServerError)
    async def internal_error_handler(request: Request, exc: InternalServerError):
        return JSONResponse(status_code=500, content=ERROR_BODY)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.error("Malformed request to %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=500, content=ERROR_BODY)

    app.include_router(router)
    return app


# ===================== Routes =====================
router = APIRouter()


@router.get("/")
def root():
    return {"message": "Food Ordering API running"}


# ===================== Users =====================
@router.post("/api/register")
def register(payload: Optional[RegisterRequest] = None, db: Database = Depends(get_db)):
    payload = payload or RegisterRequest()
    try:
        user = User(**payload.model_dump())
        return create_document(db, USERS, user)
    except Exception as exc:
        logger.exception("Error registering user")
        raise InternalServerError() from exc


@router.get("/api/user/{user_id}")
def get_user(user_id: str, db: Database = Depends(get_db)):
    try:
        return get_document_by_id(db, USERS, user_id)
    except Exception as exc:
        logger.exception("Error fetching user")
        raise InternalServerError() from exc


# ===================== Food Items =====================
@router.get("/api/food")
def list_food(db: Database = Depends(get_db)):
    try:
        return get_documents(db, FOODS)
    except Exception as exc:
        logger.exception("Error fetching food items")
        raise InternalServerError() from exc


@router.get("/api/food/category/{category}")
def filter_food_by_category(category: str, db: Database = Depends(get_db)):
    try:
        return get_documents(db, FOODS, {"category": category})
    except Exception as exc:
        logger.exception("Error fetching food items by category")
        raise InternalServerError() from exc


@router.get("/api/food/search/{name}")
def search_food_by_name(name: str, db: Database = Depends(get_db)):
    try:
        # literal, case-insensitive substring match
        return get_documents(db, FOODS, {"name": {"$regex": re.escape(name), "$options": "i"}})
    except Exception as exc:
        logger.exception("Error searching food items")
        raise InternalServerError() from exc


# ===================== Orders =====================
@router.post("/api/order")
def place_order(payload: Optional[PlaceOrderRequest] = None, db: Database = Depends(get_db)):
    """Create an order.

    Besides foodId, userId, addressId and paymentMode the body may carry
    ``orderId``, the key later used by the feedback and payment routes. The
    original contract had no way to set it.
    """
    payload = payload or PlaceOrderRequest()
    try:
        order = Order(**payload.model_dump())
        return create_document(db, ORDERS, order)
    except Exception as exc:
        logger.exception("Error placing order")
        raise InternalServerError() from exc


@router.get("/api/order/{order_id}")
def get_order(order_id: str, db: Database = Depends(get_db)):
    try:
        return get_document_by_id(db, ORDERS, order_id)
    except Exception as exc:
        logger.exception("Error fetching order")
        raise InternalServerError() from exc


@router.put("/api/order/feedback/{orderId}")
def submit_feedback(orderId: str, payload: Optional[FeedbackRequest] = None, db: Database = Depends(get_db)):
    payload = payload or FeedbackRequest()
    try:
        feedback = Feedback(**payload.model_dump())
        # the whole sub-document is replaced; omitted fields are dropped
        return find_one_and_set(db, ORDERS, {"orderId": orderId}, {"feedback": feedback.model_dump(exclude_none=True)})
    except Exception as exc:
        logger.exception("Error providing feedback")
        raise InternalServerError() from exc


# ===================== Payments =====================
@router.post("/api/payment")
def record_payment(payload: Optional[PaymentRequest] = None, db: Database = Depends(get_db)):
    payload = payload or PaymentRequest()
    # No gateway call is made; the caller passes the gateway response through.
    try:
        filter_dict = {"orderId": payload.orderId, "userId": to_object_id(payload.userId)}
        fields = {}
        if payload.paymentDetails is not None:
            fields["paymentDetails"] = payload.paymentDetails
        return find_one_and_set(db, ORDERS, filter_dict, fields)
    except Exception as exc:
        logger.exception("Error processing payment")
        raise InternalServerError() from exc


app = create_app()


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 3000))
    uvicorn.run(app, host="0.0.0.0", port=port)
