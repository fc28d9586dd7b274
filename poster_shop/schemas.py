import re
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from poster_shop.models import OrderStatus

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
METADATA_VALUE_MAX = 500


class CheckoutRequest(BaseModel):
    # Stripe caps each metadata value at 500 characters.
    model_config = ConfigDict(str_strip_whitespace=True, str_max_length=METADATA_VALUE_MAX)

    theme: str = Field(..., min_length=1, examples=["elf"])
    tier: str = Field(..., min_length=1, examples=["print"])
    quantity: int = Field(..., gt=0, strict=True)
    upload_id: str = Field(..., min_length=1)
    customer_name: str = Field(..., min_length=1)
    customer_email: str
    customer_phone: str = ""
    shipping_address: str = ""
    notes: str = ""

    @field_validator("customer_email")
    @classmethod
    def check_email(cls, v: str) -> str:
        v = v.strip()
        if not EMAIL_RE.match(v):
            raise ValueError("must be a valid email address")
        return v

    def to_metadata(self, order_id: str) -> dict:
        """Flatten into Stripe session metadata (string values only)."""
        return {
            "order_id": order_id,
            "theme": self.theme,
            "tier": self.tier,
            "quantity": str(self.quantity),
            "upload_id": self.upload_id,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "shipping_address": self.shipping_address,
            "notes": self.notes,
        }


class CheckoutResponse(BaseModel):
    session_id: str
    url: str
    order_id: str
    amount: int


class SessionMetadata(BaseModel):
    order_id: str = Field(..., min_length=1)
    theme: str
    tier: str
    quantity: int = Field(..., gt=0)
    upload_id: str
    customer_name: str
    customer_phone: str = ""
    shipping_address: str = ""
    notes: str = ""


class CustomerDetails(BaseModel):
    email: Optional[str] = None


class CompletedSession(BaseModel):
    """The ``data.object`` of a ``checkout.session.completed`` event."""

    id: str = Field(..., min_length=1)
    payment_intent: Optional[str] = None
    customer_email: Optional[str] = None
    customer_details: Optional[CustomerDetails] = None
    amount_total: int
    metadata: SessionMetadata

    @property
    def email(self) -> Optional[str]:
        if self.customer_email:
            return self.customer_email
        if self.customer_details:
            return self.customer_details.email
        return None


class UploadResponse(BaseModel):
    success: bool = True
    upload_id: str
    filename: str
    url: str


class StatusUpdate(BaseModel):
    status: OrderStatus


class OrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    stripe_session_id: str
    stripe_payment_intent: Optional[str]
    theme: str
    tier: str
    quantity: int
    upload_id: str
    customer_name: str
    customer_email: str
    customer_phone: str
    shipping_address: str
    notes: str
    amount: int
    status: str
    created_at: datetime
    updated_at: datetime


class OrderList(BaseModel):
    orders: List[OrderRead]
