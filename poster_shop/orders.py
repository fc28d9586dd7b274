import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from poster_shop.errors import NotFound
from poster_shop.models import Order, OrderStatus, utcnow

logger = logging.getLogger(__name__)


def get_by_id(db: Session, order_id: str):
    return db.get(Order, order_id)


def get_by_session_id(db: Session, session_id: str):
    return db.query(Order).filter_by(stripe_session_id=session_id).first()


def list_all(db: Session):
    return db.query(Order).order_by(Order.created_at.desc()).all()


def append_if_absent(db: Session, order: Order):
    """Insert ``order`` unless one already exists for its Stripe session.

    Returns ``(order, created)``. The unique constraint on
    ``stripe_session_id`` makes the insert atomic, so a concurrent duplicate
    surfaces as an IntegrityError and resolves to the row that won.
    """
    existing = get_by_session_id(db, order.stripe_session_id)
    if existing is not None:
        return existing, False

    db.add(order)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = get_by_session_id(db, order.stripe_session_id)
        if existing is None:
            raise
        logger.info("Lost insert race for session %s; keeping order %s",
                    order.stripe_session_id, existing.id)
        return existing, False

    db.refresh(order)
    return order, True


def update_status(db: Session, order_id: str, status: OrderStatus, notifier) -> Order:
    order = get_by_id(db, order_id)
    if order is None:
        raise NotFound("Order not found")

    previous = order.status
    order.status = OrderStatus(status).value
    order.updated_at = utcnow()
    db.commit()
    db.refresh(order)

    logger.info("Order %s status %s -> %s", order.id, previous, order.status)
    notifier.notify_status_changed(order)
    return order
