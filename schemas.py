"""
Database Schemas for the Canteen API

Each model below describes the documents of one MongoDB collection
(foods, orders, reviews, payments) or a request body. Field names are
camelCase because that is what the web client sends.

Documents are free-form: every field is optional and unknown fields are
kept. Only the fields a client actually sent are stored, so dump request
models with ``exclude_unset=True``.
"""
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# int stays int, so a price of 20 is stored as 20
Amount = Union[Annotated[int, Field(ge=0)], Annotated[float, Field(ge=0)]]


class Food(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = Field(None, description="Dish name")
    price: Optional[Amount] = Field(None, description="Unit price")
    description: Optional[str] = None
    category: Optional[str] = None
    image: Optional[str] = Field(None, description="Image URL")


class OrderItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    foodId: Optional[str] = Field(None, description="Referenced food _id as string")
    name: Optional[str] = None
    price: Optional[Amount] = None
    quantity: Optional[int] = Field(None, ge=1)


class Order(BaseModel):
    model_config = ConfigDict(extra="allow")

    userId: Optional[str] = Field(None, description="User placing the order")
    items: Optional[List[OrderItem]] = None
    totalAmount: Optional[Amount] = None
    status: Optional[str] = None
    shippingAddress: Any = None


class Review(BaseModel):
    model_config = ConfigDict(extra="allow")

    foodId: Optional[str] = Field(None, description="Reviewed food _id as string")
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = None
    userId: Optional[str] = None
    userName: Optional[str] = None


class PaymentIntentRequest(BaseModel):
    amount: int = Field(..., gt=0, description="Amount in the smallest currency unit")
    userId: str = Field(..., min_length=1)
    items: List[Dict[str, Any]] = Field(default_factory=list)
    shippingAddress: Any = None


class Payment(BaseModel):
    userId: str
    paymentIntentId: str
    amount: int
    currency: str
    status: Literal["pending"] = "pending"
    items: List[Dict[str, Any]] = []
    shippingAddress: Any = None
