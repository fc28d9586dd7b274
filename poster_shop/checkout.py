import logging
import uuid

from sqlalchemy.orm import Session

from poster_shop import catalog
from poster_shop.errors import ValidationError
from poster_shop.schemas import CheckoutRequest
from poster_shop.stripe_service import create_checkout_session
from poster_shop.uploads import get_upload

logger = logging.getLogger(__name__)


def initiate(db: Session, intent: CheckoutRequest) -> dict:
    """Open a payment session carrying the whole order intent as metadata.

    No order row is written here; the webhook materializes it once Stripe
    confirms payment, using the order id generated below.
    """
    try:
        unit_amount = catalog.price_of(intent.tier)
        product = catalog.product_name(intent.tier)
        ships = catalog.requires_shipping(intent.tier)
    except catalog.UnknownKey:
        raise ValidationError("Invalid tier") from None
    try:
        theme_name = catalog.display_name(intent.theme)
    except catalog.UnknownKey:
        raise ValidationError("Invalid theme") from None

    if intent.quantity <= 0:
        raise ValidationError("Invalid quantity")
    if get_upload(db, intent.upload_id) is None:
        raise ValidationError("Unknown upload_id")

    amount = unit_amount * intent.quantity
    order_id = str(uuid.uuid4())

    session = create_checkout_session(
        order_id=order_id,
        label=f"{theme_name} - {product}",
        description="Custom holiday movie poster" + (" (shipped)" if ships else " (digital delivery)"),
        unit_amount=unit_amount,
        quantity=intent.quantity,
        customer_email=intent.customer_email,
        metadata=intent.to_metadata(order_id),
    )

    logger.info("Checkout session %s opened for order %s (%s x%d, %d)",
                session.id, order_id, intent.tier, intent.quantity, amount)
    return {"session_id": session.id, "url": session.url, "order_id": order_id, "amount": amount}
