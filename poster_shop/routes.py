from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from poster_shop import orders
from poster_shop.auth import verify_token
from poster_shop.checkout import initiate
from poster_shop.database import get_db
from poster_shop.errors import NotFound
from poster_shop.notifier import get_notifier
from poster_shop.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    OrderList,
    OrderRead,
    StatusUpdate,
    UploadResponse,
)
from poster_shop.stripe_service import retrieve_session
from poster_shop.uploads import save_upload

router = APIRouter(prefix="/api")


@router.post("/upload", response_model=UploadResponse)
def upload_photo(photo: UploadFile = File(...), db: Session = Depends(get_db)):
    record = save_upload(db, photo)
    return UploadResponse(
        upload_id=record.id,
        filename=record.filename,
        url=f"/uploads/{record.filename}",
    )


@router.post("/create-checkout", response_model=CheckoutResponse)
def create_checkout(request: CheckoutRequest, db: Session = Depends(get_db)):
    return initiate(db, request)


@router.get("/order/{session_id}")
def get_order(session_id: str, db: Session = Depends(get_db)):
    order = orders.get_by_session_id(db, session_id)
    if order is None:
        raise NotFound("Order not found")

    session = retrieve_session(session_id)
    return {
        "order": OrderRead.model_validate(order),
        "session": {
            "payment_status": session.payment_status,
            "customer_email": session.customer_email,
        },
    }


@router.get("/admin/orders", response_model=OrderList)
def list_orders(db: Session = Depends(get_db), auth=Depends(verify_token)):
    return {"orders": orders.list_all(db)}


@router.patch("/admin/orders/{order_id}")
def update_order_status(
    order_id: str,
    update: StatusUpdate,
    db: Session = Depends(get_db),
    notifier=Depends(get_notifier),
    auth=Depends(verify_token),
):
    order = orders.update_status(db, order_id, update.status, notifier)
    return {"success": True, "order": OrderRead.model_validate(order)}
