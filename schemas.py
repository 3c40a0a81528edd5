"""
Pydantic schemas for request validation.

Request bodies use camelCase keys; the gateway callback fields keep Razorpay's
snake_case names.
"""

from decimal import Decimal
from typing import List, Literal, Optional

from flask import request
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"
MAX_LINE_QUANTITY = 1000


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)


def load_json(model):
    """Validate the current request body against `model` (raises pydantic.ValidationError)."""
    return model.model_validate(request.get_json(silent=True) or {})


# ---------- auth ----------
class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: str = Field(..., min_length=2, max_length=120)
    restaurant_name: str = Field(..., min_length=2, max_length=120)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


# ---------- sessions ----------
class CreateSessionRequest(CamelModel):
    restaurant_slug: str = Field(..., min_length=1)
    table_number: str = Field(..., min_length=1, max_length=20)

    @field_validator("table_number", mode="before")
    @classmethod
    def table_number_as_text(cls, v):
        return str(v) if isinstance(v, int) else v


class CloseSessionRequest(CamelModel):
    payment_method: Literal["online", "counter", "split"]
    payment_id: Optional[str] = None


class OnlinePaymentProof(BaseModel):
    razorpay_order_id: str = Field(..., min_length=1)
    razorpay_payment_id: str = Field(..., min_length=1)
    razorpay_signature: str = Field(..., min_length=1)


# ---------- orders ----------
class CartLine(CamelModel):
    item_id: int
    quantity: int = Field(..., gt=0, le=MAX_LINE_QUANTITY)


class CustomerDetails(CamelModel):
    items: List[CartLine] = Field(..., min_length=1)
    customer_name: str = Field(..., min_length=1, max_length=100)
    customer_phone: str = Field(..., min_length=10, max_length=15)
    notes: Optional[str] = Field(None, max_length=500)


class CreateOrderRequest(CustomerDetails):
    session_token: str = Field(..., min_length=1)


class PlaceOrderRequest(CustomerDetails):
    restaurant_slug: str = Field(..., min_length=1)
    table_number: Optional[str] = None

    @field_validator("table_number", mode="before")
    @classmethod
    def table_number_as_text(cls, v):
        return str(v) if isinstance(v, int) else v


class UpdateOrderStatusRequest(CamelModel):
    status: Literal["pending", "cooking", "ready", "paid", "cancelled"]


# ---------- payments ----------
class GatewayOrderNotes(CamelModel):
    restaurant_slug: str
    customer_name: str
    customer_phone: str


class CreateGatewayOrderRequest(CamelModel):
    amount: Decimal = Field(..., gt=0)
    currency: str = "INR"
    receipt: str = Field(..., min_length=1)
    notes: Optional[GatewayOrderNotes] = None


class VerifyOrderPaymentRequest(OnlinePaymentProof):
    order_id: int


# ---------- restaurants ----------
class UpdateRestaurantRequest(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    slug: Optional[str] = Field(None, min_length=1, max_length=120, pattern=SLUG_PATTERN)
    is_active: Optional[bool] = None


class ToggleRestaurantRequest(CamelModel):
    is_active: bool


# ---------- admin subscriptions ----------
class GrantSubscriptionRequest(CamelModel):
    email: str = Field(..., min_length=1)
    months: int = Field(12, ge=1, le=120)
    tier: str = "pro"

    @field_validator("tier", mode="before")
    @classmethod
    def known_paid_tier(cls, v):
        return "enterprise" if v == "enterprise" else "pro"


class ExtendSubscriptionRequest(CamelModel):
    user_id: int
    months: int = Field(12, ge=1, le=120)


class RevokeSubscriptionRequest(CamelModel):
    user_id: int


class PlanSettingsUpdate(BaseModel):
    """Plan display settings keep their storage key names (snake_case)."""

    pro_plan_price: Optional[str] = None
    pro_plan_currency: Optional[str] = None
    pro_plan_interval: Optional[str] = None
    pro_plan_name: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def as_trimmed_text(cls, v):
        return None if v is None else str(v).strip()
