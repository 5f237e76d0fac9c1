# solarshop/orders.py
"""Order write path and payment reconciliation.

Checkout writes the order and its items in one transaction: the order
row is flushed first to get its id, the items follow, and any failure
rolls both back. The webhook side only ever moves an order from
``pending_verification`` to ``paid``.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from .errors import Conflict, Internal, InvalidRequest, NotFound
from .models import Order, OrderItem, OrderStatus, Product
from .paystack import to_minor_units
from .schemas import ChargeData, CheckoutLine, CheckoutRequest
from .sessions import SessionUser

logger = logging.getLogger(__name__)

PRICE_TOLERANCE = 0.01


def _validate(req: CheckoutRequest) -> None:
    if not req.cart_items:
        raise InvalidRequest("Cart is empty")
    if req.shipping_details is None or not req.shipping_details.is_complete():
        raise InvalidRequest("Shipping details are required")
    if req.total is None:
        raise InvalidRequest("Order total is required")
    if not (req.reference or "").strip():
        raise InvalidRequest("Payment reference is required")


def _catalog_prices(db: Session, lines: List[CheckoutLine]) -> Dict[int, float]:
    ids = {line.product_id for line in lines}
    products = (
        db.query(Product)
        .filter(Product.id.in_(ids), Product.archived.is_(False))
        .all()
    )
    prices = {p.id: p.price for p in products}

    missing = sorted(ids - prices.keys())
    if missing:
        raise NotFound(f"Product not found: {missing[0]}")

    for line in lines:
        if line.price is not None and abs(line.price - prices[line.product_id]) > PRICE_TOLERANCE:
            raise InvalidRequest(f"Price for product {line.product_id} has changed")
    return prices


def _line_items(order_id: int, lines: List[CheckoutLine], prices: Dict[int, float]) -> List[OrderItem]:
    return [
        OrderItem(
            order_id=order_id,
            product_id=line.product_id,
            quantity=line.quantity,
            price_at_purchase=prices[line.product_id],
        )
        for line in lines
    ]


def create_order(db: Session, user: SessionUser, req: CheckoutRequest) -> Order:
    _validate(req)
    reference = req.reference.strip()

    prices = _catalog_prices(db, req.cart_items)
    computed = sum(prices[line.product_id] * line.quantity for line in req.cart_items)
    if abs(computed - req.total) > PRICE_TOLERANCE:
        raise InvalidRequest("Order total does not match cart items")

    if db.query(Order.id).filter(Order.paystack_reference == reference).first():
        raise Conflict("Payment reference already used")

    shipping = req.shipping_details.model_dump()
    if not shipping.get("email"):
        shipping["email"] = user.email

    order = Order(
        user_id=user.id,
        total_price=computed,
        status=OrderStatus.PENDING_VERIFICATION.value,
        shipping_address=shipping,
        paystack_reference=reference,
    )
    try:
        db.add(order)
        db.flush()  # assigns order.id
        db.add_all(_line_items(order.id, req.cart_items, prices))
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"Checkout for user {user.id} rolled back: reference {reference} already used")
        raise Conflict("Payment reference already used")
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Checkout for user {user.id} rolled back")
        raise Internal("Failed to process checkout")

    db.refresh(order)
    logger.info(f"Order {order.id} created for user {user.id} ({len(req.cart_items)} items, total {computed})")
    return order


# ------------------------------
# Reconciliation
# ------------------------------
def _metadata_order_id(metadata: Any) -> Optional[int]:
    if not isinstance(metadata, dict):
        return None
    raw = metadata.get("db_order_id")
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def find_order_for_charge(db: Session, charge: ChargeData) -> Optional[Order]:
    order_id = _metadata_order_id(charge.metadata)
    if order_id is not None:
        order = db.get(Order, order_id)
        if order:
            return order
    if charge.reference:
        return db.query(Order).filter(Order.paystack_reference == charge.reference).first()
    return None


def apply_charge_success(db: Session, charge: ChargeData) -> str:
    """Mark the order behind a successful charge as paid.

    Returns a short outcome string; every outcome is acknowledged to the
    gateway.
    """
    order = find_order_for_charge(db, charge)
    if order is None:
        logger.warning(
            f"charge.success: no order for reference {charge.reference}, metadata {charge.metadata}. "
            "Manual reconciliation needed."
        )
        return "order_not_found"

    if order.status == OrderStatus.PAID.value:
        logger.info(f"charge.success: order {order.id} already paid")
        return "already_paid"

    if order.status != OrderStatus.PENDING_VERIFICATION.value:
        logger.warning(f"charge.success: order {order.id} is {order.status}, not updating")
        return "ignored_status"

    if charge.amount is None:
        logger.warning(f"charge.success: no amount for order {order.id}, skipping amount check")
    elif charge.amount != to_minor_units(order.total_price):
        logger.warning(
            f"charge.success: amount {charge.amount} does not match order {order.id} "
            f"total {to_minor_units(order.total_price)}"
        )
        return "amount_mismatch"

    values = {"status": OrderStatus.PAID.value, "updated_at": datetime.utcnow()}
    # a stored reference is never overwritten; another order may own this one
    if (
        charge.reference
        and not order.paystack_reference
        and not db.query(Order.id).filter(Order.paystack_reference == charge.reference).first()
    ):
        values["paystack_reference"] = charge.reference

    # the status filter keeps concurrent deliveries from applying twice
    updated = (
        db.query(Order)
        .filter(Order.id == order.id, Order.status == OrderStatus.PENDING_VERIFICATION.value)
        .update(values, synchronize_session=False)
    )
    db.commit()

    if not updated:
        return "already_paid"
    logger.info(f"Order {order.id} marked paid (reference {charge.reference})")
    return "paid"


# ------------------------------
# Reads and admin updates
# ------------------------------
def _with_items(query):
    return query.options(selectinload(Order.items).selectinload(OrderItem.product))


def list_user_orders(db: Session, user_id: int) -> List[Order]:
    return (
        _with_items(db.query(Order))
        .filter(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


def list_orders(db: Session, status: Optional[str] = None) -> List[Order]:
    query = _with_items(db.query(Order)).options(selectinload(Order.user))
    if status:
        query = query.filter(Order.status == status)
    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


def get_order(db: Session, order_id: int) -> Order:
    order = (
        _with_items(db.query(Order))
        .options(selectinload(Order.user))
        .filter(Order.id == order_id)
        .first()
    )
    if not order:
        raise NotFound("Order not found")
    return order


def update_status(db: Session, order_id: int, status: str) -> Order:
    try:
        new_status = OrderStatus(status)
    except ValueError:
        raise InvalidRequest(f"Unknown order status: {status}")

    order = get_order(db, order_id)
    order.status = new_status.value
    order.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(order)
    logger.info(f"Order {order.id} status set to {order.status}")
    return order


def serialize_order(order: Order) -> Dict[str, Any]:
    """Customer-facing shape: items carry the product with the purchase price."""
    return {
        "id": order.id,
        "created_at": order.created_at,
        "user_id": order.user_id,
        "total_price": order.total_price,
        "status": order.status,
        "shipping_address": order.shipping_address,
        "paystack_reference": order.paystack_reference,
        "order_items": [
            {
                "id": item.product_id,
                "name": item.product.name if item.product else None,
                "price": item.price_at_purchase,
                "quantity": item.quantity,
                "image_url": item.product.image_url if item.product else None,
                "category": item.product.category if item.product else None,
                "description": item.product.description if item.product else None,
                "wattage": item.product.wattage if item.product else None,
            }
            for item in order.items
        ],
    }


def serialize_admin_order(order: Order) -> Dict[str, Any]:
    data = serialize_order(order)
    data["updated_at"] = order.updated_at
    data["customer_email"] = order.user.email if order.user else None
    data["order_items"] = [
        {
            "product_id": item.product_id,
            "quantity": item.quantity,
            "price_at_purchase": item.price_at_purchase,
            "product": {
                "id": item.product.id,
                "name": item.product.name,
                "price": item.product.price,
                "image_url": item.product.image_url,
                "category": item.product.category,
                "wattage": item.product.wattage,
                "description": item.product.description,
            } if item.product else None,
        }
        for item in order.items
    ]
    return data
