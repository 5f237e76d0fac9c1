import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import orders, paystack
from .config import Config
from .db import get_db
from .schemas import CheckoutRequest, PaymentInitRequest, WebhookEvent
from .sessions import SessionUser, get_current_user

router = APIRouter()

logger = logging.getLogger(__name__)


# ------------------------------
# POST /checkout
# ------------------------------
@router.post("/checkout")
def checkout(
    req: CheckoutRequest,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    order = orders.create_order(db, user, req)
    return {
        "message": "Order created",
        "orderId": order.id,
        "status": order.status,
        "total_price": order.total_price,
    }


# ------------------------------
# POST /paystack/initialize
# ------------------------------
@router.post("/paystack/initialize")
def initialize_payment(req: PaymentInitRequest):
    return paystack.initialize_transaction(req.amount, req.email, req.metadata)


# ------------------------------
# POST /paystack/webhook
# ------------------------------
@router.post("/paystack/webhook")
async def paystack_webhook(request: Request, db: Session = Depends(get_db)):
    secret = Config.PAYSTACK_WEBHOOK_SECRET
    if not secret:
        logger.error("Paystack webhook secret not configured.")
        return JSONResponse({"detail": "Webhook secret not configured."}, status_code=500)

    signature = request.headers.get(paystack.SIGNATURE_HEADER)
    body = await request.body()  # raw bytes, the signature covers them exactly

    if not signature:
        logger.warning("Paystack webhook: missing signature.")
        return JSONResponse({"detail": "Missing signature"}, status_code=400)

    if not paystack.verify_signature(body, signature, secret):
        logger.warning("Paystack webhook: invalid signature.")
        return JSONResponse({"detail": "Invalid signature"}, status_code=400)

    try:
        event = WebhookEvent.model_validate(json.loads(body))
    except (ValueError, ValidationError) as exc:
        logger.error(f"Paystack webhook: invalid payload: {exc}")
        return JSONResponse({"detail": "Invalid JSON payload"}, status_code=400)

    logger.info(f"Paystack webhook event received: {event.event} (reference {event.data.reference})")

    if event.event != "charge.success":
        logger.info(f"Unhandled Paystack event type: {event.event}")
        return {"received": True}

    try:
        outcome = orders.apply_charge_success(db, event.data)
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Database error while reconciling Paystack reference {event.data.reference}")
        # acknowledged so the gateway stops retrying; needs a manual check
        return {"received": True, "outcome": "error"}

    return {"received": True, "outcome": outcome}


# ------------------------------
# GET /account/orders
# ------------------------------
@router.get("/account/orders")
def account_orders(
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return [orders.serialize_order(o) for o in orders.list_user_orders(db, user.id)]
