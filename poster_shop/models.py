import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, DateTime, Text

from poster_shop.database import Base


def utcnow():
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class OrderStatus(str, enum.Enum):
    # Labels only; staff may move an order between any two of them.
    PENDING = "pending"
    DESIGNING = "designing"
    PROOF_READY = "proof_ready"
    APPROVED = "approved"
    PRINTING = "printing"
    SHIPPED = "shipped"
    COMPLETED = "completed"


class Upload(Base):
    __tablename__ = "uploads"

    id = Column(String, primary_key=True, default=new_id)
    filename = Column(String, nullable=False)          # stored name on disk
    original_name = Column(String, nullable=False)
    path = Column(String, nullable=False)
    size = Column(Integer, nullable=False)             # bytes
    uploaded_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class Order(Base):
    __tablename__ = "orders"

    id = Column(String, primary_key=True)              # generated at checkout
    stripe_session_id = Column(String, unique=True, index=True, nullable=False)
    stripe_payment_intent = Column(String, nullable=True)
    theme = Column(String, nullable=False)
    tier = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    upload_id = Column(String, nullable=False)
    customer_name = Column(String, nullable=False)
    customer_email = Column(String, nullable=False)
    customer_phone = Column(String, nullable=False, default="")
    shipping_address = Column(Text, nullable=False, default="")
    notes = Column(Text, nullable=False, default="")
    amount = Column(Integer, nullable=False)           # minor units
    status = Column(String, nullable=False, default=OrderStatus.PENDING.value)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
