import json
import logging
import os

import stripe

from poster_shop import config
from poster_shop.errors import AuthenticationError, MalformedEventError, UpstreamError

logger = logging.getLogger(__name__)


def _api_key():
    return os.getenv("STRIPE_SECRET_KEY")


def create_checkout_session(*, order_id: str, label: str, description: str,
                            unit_amount: int, quantity: int, customer_email: str,
                            metadata: dict):
    try:
        return stripe.checkout.Session.create(
            api_key=_api_key(),
            payment_method_types=["card"],
            line_items=[{
                "price_data": {
                    "currency": config.CURRENCY,
                    "product_data": {"name": label, "description": description},
                    "unit_amount": unit_amount,
                },
                "quantity": quantity,
            }],
            mode="payment",
            success_url=f"{config.BASE_URL}/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{config.BASE_URL}/cancel",
            customer_email=customer_email,
            metadata=metadata,
            idempotency_key=order_id,
        )
    except stripe.StripeError as exc:
        logger.error("Checkout session creation failed for order %s: %s", order_id, exc)
        raise UpstreamError("Failed to create checkout session") from exc


def retrieve_session(session_id: str):
    try:
        return stripe.checkout.Session.retrieve(session_id, api_key=_api_key())
    except stripe.StripeError as exc:
        logger.error("Could not retrieve checkout session %s: %s", session_id, exc)
        raise UpstreamError("Failed to fetch payment status") from exc


def verify_event(payload: bytes, signature: str) -> dict:
    """Check the Stripe-Signature header and return the event body as a dict."""
    if not signature:
        raise AuthenticationError("Missing signature")
    try:
        stripe.Webhook.construct_event(
            payload,
            signature,
            os.getenv("STRIPE_WEBHOOK_SECRET")
        )
    except stripe.SignatureVerificationError as exc:
        raise AuthenticationError("Invalid signature") from exc
    except ValueError as exc:
        raise MalformedEventError("Invalid payload") from exc

    # construct_event already proved the body is valid JSON
    event = json.loads(payload)
    if not isinstance(event, dict):
        raise MalformedEventError("Invalid payload")
    return event
