import logging
from datetime import datetime, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from . import orders
from .db import get_db
from .errors import NotFound
from .models import REVENUE_STATUSES, Article, Order, Product, Testimonial, User
from .schemas import OrderStatusUpdate, TestimonialApproval, TestimonialOut
from .sessions import require_admin

logger = logging.getLogger(__name__)

SALES_CHART_DAYS = 7

# every route here is admin only
router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/orders")
def list_orders(status: Optional[str] = None, db: Session = Depends(get_db)):
    return [orders.serialize_admin_order(o) for o in orders.list_orders(db, status)]


@router.get("/orders/{order_id}")
def get_order(order_id: int, db: Session = Depends(get_db)):
    return orders.serialize_admin_order(orders.get_order(db, order_id))


@router.patch("/orders/{order_id}")
def update_order_status(order_id: int, payload: OrderStatusUpdate, db: Session = Depends(get_db)):
    order = orders.update_status(db, order_id, payload.status)
    return {"message": "Order status updated", "order": orders.serialize_admin_order(order)}


@router.get("/testimonials", response_model=List[TestimonialOut])
def list_all_testimonials(db: Session = Depends(get_db)):
    # pending ones included, unlike the storefront list
    return db.query(Testimonial).order_by(Testimonial.created_at.desc(), Testimonial.id.desc()).all()


@router.patch("/testimonials/{testimonial_id}/approve")
def approve_testimonial(testimonial_id: int, payload: TestimonialApproval, db: Session = Depends(get_db)):
    testimonial = db.get(Testimonial, testimonial_id)
    if not testimonial:
        raise NotFound("Testimonial not found")

    testimonial.approved = payload.approved
    db.commit()
    db.refresh(testimonial)
    return {
        "message": f"Testimonial {'approved' if payload.approved else 'unapproved'} successfully!",
        "testimonial": TestimonialOut.model_validate(testimonial),
    }


@router.get("/stats")
def dashboard_stats(db: Session = Depends(get_db)):
    """Headline numbers for the admin dashboard."""
    now = datetime.utcnow()
    start_of_month = datetime(now.year, now.month, 1)

    total_revenue = (
        db.query(func.coalesce(func.sum(Order.total_price), 0.0))
        .filter(Order.status.in_(REVENUE_STATUSES))
        .scalar()
    )
    return {
        "total_revenue": float(total_revenue or 0),
        "new_orders_count": db.query(Order).filter(Order.created_at >= start_of_month).count(),
        "new_customers_this_month": db.query(User).filter(User.created_at >= start_of_month).count(),
        "total_customers": db.query(User).count(),
        "total_products": db.query(Product).count(),
        "total_articles": db.query(Article).count(),
    }


@router.delete("/testimonials/{testimonial_id}")
def delete_testimonial(testimonial_id: int, db: Session = Depends(get_db)):
    testimonial = db.get(Testimonial, testimonial_id)
    if not testimonial:
        raise NotFound("Testimonial not found")

    db.delete(testimonial)
    db.commit()
    logger.info(f"Testimonial {testimonial_id} deleted")
    return {"message": "Testimonial deleted successfully!"}


# ------------------------------
# Dashboard charts
# ------------------------------
def _status_label(status: str) -> str:
    return status.replace("_", " ").title()


@router.get("/dashboard/order-status-chart")
def order_status_chart(db: Session = Depends(get_db)):
    """Order counts per status, labelled for the chart legend."""
    rows = (
        db.query(Order.status, func.count(Order.id))
        .group_by(Order.status)
        .order_by(Order.status.asc())
        .all()
    )
    return {
        "labels": [_status_label(status) for status, _ in rows],
        "data": [count for _, count in rows],
    }


@router.get("/dashboard/sales-chart")
def sales_chart(days: int = SALES_CHART_DAYS, db: Session = Depends(get_db)):
    """Daily revenue for the last `days` UTC days, today included."""
    days = max(1, min(days, 90))
    today = datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
    first_day = today - timedelta(days=days - 1)

    orders_in_range = (
        db.query(Order.created_at, Order.total_price)
        .filter(Order.status.in_(REVENUE_STATUSES), Order.created_at >= first_day)
        .all()
    )
    totals = {}
    for created_at, total_price in orders_in_range:
        day = created_at.date()
        totals[day] = totals.get(day, 0.0) + (total_price or 0.0)

    labels, data = [], []
    for offset in range(days):
        day = first_day + timedelta(days=offset)
        labels.append(f"{day:%b} {day.day}")
        data.append(round(totals.get(day.date(), 0.0), 2))
    return {"labels": labels, "data": data}
