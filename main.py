import logging
from contextlib import asynccontextmanager
from typing import Optional

import stripe
from bson.errors import InvalidId
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, configure_logging, get_settings
from database import COLLECTIONS, FOODS, ORDERS, PAYMENTS, REVIEWS, Database, DatabaseUnavailable
from payments import UNCONFIGURED_MESSAGE, PaymentService, ProviderUnconfigured
from schemas import Food, Order, Payment, PaymentIntentRequest, Review

logger = logging.getLogger(__name__)

router = APIRouter()


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_payments(request: Request) -> PaymentService:
    return request.app.state.payments


def require_payments(request: Request) -> PaymentService:
    # dependencies resolve before the body is validated
    payments = get_payments(request)
    if not payments.configured:
        raise ProviderUnconfigured(UNCONFIGURED_MESSAGE)
    return payments


def _update_fields(payload) -> dict:
    data = payload.model_dump(exclude_unset=True)
    # never overwritten from the client
    data.pop("_id", None)
    data.pop("createdAt", None)
    if not data:
        raise HTTPException(400, "No fields to update")
    return data


# ===================== Public Endpoints =====================
@router.get("/", response_class=PlainTextResponse)
def root():
    return "Canteen API is running"


@router.get("/health")
def health(db: Database = Depends(get_database), payments: PaymentService = Depends(get_payments)):
    database_ok = db.ping()
    return {
        "status": "ok" if database_ok else "degraded",
        "database": "connected" if database_ok else "unavailable",
        "payments": "configured" if payments.configured else "not configured",
    }


@router.get("/schema")
def get_schema():
    return {
        "collections": COLLECTIONS,
        "notes": "Each model in schemas.py describes one MongoDB collection of the canteen database.",
    }


# ===================== Foods =====================
@router.get("/foods")
def list_foods(db: Database = Depends(get_database)):
    return db.get_documents(FOODS)


@router.post("/foods")
def create_food(payload: Food, db: Database = Depends(get_database)):
    return db.create_document(FOODS, payload.model_dump(exclude_unset=True))


@router.put("/foods/{food_id}")
def update_food(food_id: str, payload: Food, db: Database = Depends(get_database)):
    if not db.update_document(FOODS, food_id, _update_fields(payload)):
        raise HTTPException(404, "Food not found")
    return {"message": "Food updated successfully"}


@router.delete("/foods/{food_id}")
def delete_food(food_id: str, db: Database = Depends(get_database)):
    if not db.delete_document(FOODS, food_id):
        raise HTTPException(404, "Food not found")
    return {"message": "Food deleted successfully"}


@router.get("/api/food/{food_id}")
def get_food(food_id: str, db: Database = Depends(get_database)):
    food = db.get_document_by_id(FOODS, food_id)
    if not food:
        raise HTTPException(404, "Food not found")
    return food


# ===================== Payments =====================
@router.post("/api/create-payment-intent")
def create_payment_intent(
    payload: PaymentIntentRequest,
    db: Database = Depends(get_database),
    payments: PaymentService = Depends(require_payments),
):
    intent = payments.create_payment_intent(
        payload.amount,
        metadata={"userId": payload.userId, "itemCount": str(len(payload.items))},
    )
    record = Payment(
        userId=payload.userId,
        paymentIntentId=intent.id,
        amount=payload.amount,
        currency=payments.currency,
        items=payload.items,
        shippingAddress=payload.shippingAddress,
    )
    db.create_document(PAYMENTS, record, timestamp=True)
    return {"clientSecret": intent.client_secret}


# ===================== Orders =====================
@router.post("/api/orders")
def create_order(payload: Order, db: Database = Depends(get_database)):
    return db.create_document(ORDERS, payload.model_dump(exclude_unset=True), timestamp=True)


@router.get("/api/orders/detail/{order_id}")
def get_order(order_id: str, db: Database = Depends(get_database)):
    order = db.get_document_by_id(ORDERS, order_id)
    if not order:
        raise HTTPException(404, "Order not found")
    return order


@router.get("/api/orders/{user_id}")
def list_user_orders(user_id: str, db: Database = Depends(get_database)):
    return db.get_documents(ORDERS, {"userId": user_id}, sort=[("createdAt", -1)])


@router.put("/api/orders/{order_id}")
def update_order(order_id: str, payload: Order, db: Database = Depends(get_database)):
    if not db.update_document(ORDERS, order_id, _update_fields(payload)):
        raise HTTPException(404, "Order not found")
    return {"message": "Order updated successfully"}


# ===================== Reviews =====================
@router.post("/api/reviews")
def create_review(payload: Review, db: Database = Depends(get_database)):
    return db.create_document(REVIEWS, payload.model_dump(exclude_unset=True), timestamp=True)


@router.get("/api/reviews/{food_id}")
def list_food_reviews(food_id: str, db: Database = Depends(get_database)):
    return db.get_documents(REVIEWS, {"foodId": food_id}, sort=[("createdAt", -1)])


@router.delete("/api/reviews/{review_id}")
def delete_review(review_id: str, db: Database = Depends(get_database)):
    if not db.delete_document(REVIEWS, review_id):
        raise HTTPException(404, "Review not found")
    return {"message": "Review deleted successfully"}


# ===================== Error Handlers =====================
def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail))


async def validation_error_handler(request: Request, exc: RequestValidationError):
    return _error(422, "Invalid request body", details=jsonable_encoder(exc.errors()))


async def invalid_id_handler(request: Request, exc: InvalidId):
    return _error(400, f"Invalid id: {exc}")


async def unconfigured_handler(request: Request, exc: ProviderUnconfigured):
    logger.error("%s %s: %s", request.method, request.url.path, exc)
    return _error(500, str(exc))


async def upstream_error_handler(request: Request, exc: Exception):
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return _error(500, str(exc))


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    payments: Optional[PaymentService] = None,
) -> FastAPI:
    settings = settings or get_settings()
    database = database or Database(settings.database_url, settings.database_name, timeout_ms=settings.database_timeout_ms)
    payments = payments or PaymentService(settings.stripe_secret_key, settings.payment_currency)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database.connect(strict=settings.require_db_on_startup)
        yield
        database.close()

    app = FastAPI(title="Canteen API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.payments = payments

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(InvalidId, invalid_id_handler)
    app.add_exception_handler(ProviderUnconfigured, unconfigured_handler)
    for exc_class in (DatabaseUnavailable, PyMongoError, stripe.StripeError, Exception):
        app.add_exception_handler(exc_class, upstream_error_handler)

    app.include_router(router)
    return app


_settings = get_settings()
configure_logging(_settings.log_level)
app = create_app(_settings)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=_settings.port)
