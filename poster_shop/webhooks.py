import logging

from pydantic import ValidationError as SchemaError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from poster_shop import orders
from poster_shop.errors import AuthenticationError, MalformedEventError
from poster_shop.models import Order, OrderStatus
from poster_shop.schemas import CompletedSession
from poster_shop.stripe_service import verify_event
from poster_shop.uploads import get_upload

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"


def order_from_session(session: CompletedSession) -> Order:
    meta = session.metadata
    return Order(
        id=meta.order_id,
        stripe_session_id=session.id,
        stripe_payment_intent=session.payment_intent,
        theme=meta.theme,
        tier=meta.tier,
        quantity=meta.quantity,
        upload_id=meta.upload_id,
        customer_name=meta.customer_name,
        customer_email=session.email,
        customer_phone=meta.customer_phone,
        shipping_address=meta.shipping_address,
        notes=meta.notes,
        amount=session.amount_total,
        status=OrderStatus.PENDING.value,
    )


def handle_event(db: Session, payload: bytes, signature: str, notifier) -> dict:
    """Process one Stripe webhook delivery.

    Raises AuthenticationError or MalformedEventError before touching the
    store. A redelivered completion event is acknowledged without creating a
    second order or sending a second round of e-mails.
    """
    try:
        event = verify_event(payload, signature)
    except AuthenticationError as exc:
        logger.warning("Rejected webhook delivery: %s", exc.message)
        raise

    event_type = event.get("type")
    if event_type != CHECKOUT_COMPLETED:
        logger.debug("Ignoring Stripe event %s (%s)", event.get("id"), event_type)
        return {"received": True}

    try:
        session = CompletedSession.model_validate(event["data"]["object"])
    except (KeyError, TypeError, SchemaError) as exc:
        raise MalformedEventError("Invalid checkout session payload") from exc
    if not session.email:
        raise MalformedEventError("Checkout session has no customer email")

    try:
        order, created = orders.append_if_absent(db, order_from_session(session))
    except IntegrityError as exc:
        # order id already belongs to a different session
        raise MalformedEventError("Order id conflicts with an existing order") from exc
    if not created:
        logger.info("Duplicate completion for session %s (order %s)", session.id, order.id)
        return {"received": True}

    logger.info("Order %s created for session %s", order.id, session.id)
    notifier.notify_order_created(order, get_upload(db, order.upload_id))
    return {"received": True}
