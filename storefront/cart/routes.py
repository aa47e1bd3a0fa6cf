# storefront/cart/routes.py
from __future__ import annotations
from flask import request, current_app

from ..errors import ValidationError
from ..services.persistence import SqlPersistence
from ..utils.api import ok
from ..utils.money import format_price
from .context import get_shopping_session
from . import bp

# ---- helpers ---------------------------------------------------------------

def _required_int(data: dict, field: str) -> int:
    value = data.get(field)
    if value is None or value == "":
        raise ValidationError(f"{field} is required", field=field)
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f"{field} must be an integer", field=field)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer", field=field)

def _cart_response(message, status_code=200):
    return ok(message, get_shopping_session().as_api(), status_code=status_code)

# ---- endpoints -------------------------------------------------------------

@bp.get("")
def get_cart():
    return _cart_response("cart")

@bp.post("/items")
def add_item():
    """
    Body: { "product_id": int, "size_id": int, "quantity": int (default 1) }
    Price and names come from the catalog, never from the client.
    """
    data = request.get_json(silent=True) or {}
    product_id = _required_int(data, "product_id")
    size_id = _required_int(data, "size_id")
    quantity = data.get("quantity", 1)

    snap = SqlPersistence().get_product_snapshot(product_id, size_id)
    get_shopping_session().add_item(
        snap.product_id, snap.size_id, snap.unit_price, snap.name, quantity,
        size_name=snap.size_name, image_url=snap.image_url,
    )
    return _cart_response("item added", 201)

@bp.patch("/items/<line_id>")
def update_item(line_id: str):
    """Body: { "delta": int }  -- a result <= 0 removes the line."""
    data = request.get_json(silent=True) or {}
    delta = _required_int(data, "delta")
    shopping = get_shopping_session()
    if shopping.cart.get(line_id) is None:
        return _cart_response("item not in cart")
    item = shopping.update_quantity(line_id, delta)
    return _cart_response("item updated" if item else "item removed")

@bp.delete("/items/<line_id>")
def remove_item(line_id: str):
    removed = get_shopping_session().remove_item(line_id)
    return _cart_response("item removed" if removed else "item not in cart")

@bp.post("/coupon")
def apply_coupon():
    """Body: { "code": "SUMMER10" }  -- replaces any applied coupon."""
    data = request.get_json(silent=True) or {}
    coupon = get_shopping_session().apply_coupon(data.get("code"))
    if coupon.kind == "percentage":
        message = f"Coupon applied! {coupon.value.normalize():f}% off"
    else:
        message = f"Coupon applied! {format_price(coupon.value, current_app.config['CURRENCY_SYMBOL'])} off"
    return _cart_response(message)

@bp.delete("/coupon")
def clear_coupon():
    get_shopping_session().clear_coupon()
    return _cart_response("coupon removed")
