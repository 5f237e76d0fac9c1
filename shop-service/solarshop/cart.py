import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from .db import get_db
from .errors import InvalidRequest, NotFound
from .models import CartItem, Product, WishlistItem
from .schemas import CartAdd, CartRemove, CartUpdate, ProductOut, WishlistPayload
from .sessions import SessionUser, get_current_user, get_optional_user

router = APIRouter()

logger = logging.getLogger(__name__)


def _require_product(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if not product:
        raise NotFound("Product not found.")
    return product


def _cart_line(item: CartItem) -> dict:
    data = ProductOut.model_validate(item.product).model_dump()
    data["quantity"] = item.quantity
    return data


def _find_line(db: Session, user_id: int, product_id: int) -> Optional[CartItem]:
    return (
        db.query(CartItem)
        .filter(CartItem.user_id == user_id, CartItem.product_id == product_id)
        .first()
    )


def set_quantity(db: Session, user_id: int, product_id: int, quantity: int) -> Optional[CartItem]:
    """Set a cart line's quantity. 0 deletes the line instead of storing it."""
    if quantity < 0:
        raise InvalidRequest("Valid product id and quantity are required")
    _require_product(db, product_id)

    line = _find_line(db, user_id, product_id)
    if quantity == 0:
        if line:
            db.delete(line)
            logger.info(f"Cart line for product {product_id} removed for user {user_id}")
        db.commit()
        return None

    if line:
        line.quantity = quantity
    else:
        line = CartItem(user_id=user_id, product_id=product_id, quantity=quantity)
        db.add(line)
    db.commit()
    db.refresh(line)
    return line


def remove_line(db: Session, user_id: int, product_id: int) -> None:
    db.query(CartItem).filter(
        CartItem.user_id == user_id, CartItem.product_id == product_id
    ).delete(synchronize_session=False)
    db.commit()


# ------------------------------
# Cart
# ------------------------------
@router.get("/cart")
def get_cart(
    user: Optional[SessionUser] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    if user is None:
        return []  # not logged in, empty cart

    items = (
        db.query(CartItem)
        .filter(CartItem.user_id == user.id)
        .order_by(CartItem.id.asc())
        .all()
    )
    return [_cart_line(item) for item in items if item.product is not None]


@router.post("/cart")
def add_to_cart(
    payload: CartAdd,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _require_product(db, payload.product_id)

    line = _find_line(db, user.id, payload.product_id)
    if line:
        line.quantity = line.quantity + payload.quantity
    else:
        db.add(CartItem(user_id=user.id, product_id=payload.product_id, quantity=payload.quantity))
    db.commit()
    return {"success": True, "message": "Item added to cart."}


@router.put("/cart")
def update_cart(
    payload: CartUpdate,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    set_quantity(db, user.id, payload.product_id, payload.quantity)
    return {"success": True, "message": "Item quantity updated."}


@router.delete("/cart")
def clear_cart(
    payload: Optional[CartRemove] = Body(None),
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if payload is not None and payload.product_id is not None:
        remove_line(db, user.id, payload.product_id)
        return {"success": True, "message": "Item removed from cart."}

    db.query(CartItem).filter(CartItem.user_id == user.id).delete(synchronize_session=False)
    db.commit()
    return {"success": True, "message": "Cart has been cleared."}


@router.put("/cart/item")
def update_cart_item(
    payload: CartUpdate,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    line = set_quantity(db, user.id, payload.product_id, payload.quantity)
    if line is None:
        return {"message": "Item removed from cart", "item": None}
    return {"message": "Item quantity updated", "item": _cart_line(line)}


@router.delete("/cart/item")
def delete_cart_item(
    product_id: int = Query(...),
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    remove_line(db, user.id, product_id)
    return {"message": "Item removed from cart successfully"}


# ------------------------------
# Wishlist
# ------------------------------
@router.get("/wishlist")
def get_wishlist(
    user: Optional[SessionUser] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    if user is None:
        return []

    rows = (
        db.query(WishlistItem.product_id)
        .filter(WishlistItem.user_id == user.id)
        .order_by(WishlistItem.created_at.desc(), WishlistItem.id.desc())
        .all()
    )
    return [row.product_id for row in rows]


@router.post("/wishlist")
def add_to_wishlist(
    payload: WishlistPayload,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    _require_product(db, payload.product_id)

    exists = (
        db.query(WishlistItem)
        .filter(WishlistItem.user_id == user.id, WishlistItem.product_id == payload.product_id)
        .first()
    )
    if not exists:
        db.add(WishlistItem(user_id=user.id, product_id=payload.product_id))
        db.commit()
    return {"success": True, "message": "Item added to wishlist."}


@router.delete("/wishlist")
def remove_from_wishlist(
    payload: WishlistPayload,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    # only ever the caller's own row
    db.query(WishlistItem).filter(
        WishlistItem.user_id == user.id, WishlistItem.product_id == payload.product_id
    ).delete(synchronize_session=False)
    db.commit()
    return {"success": True, "message": "Item removed from wishlist."}
