# storefront/order/routes.py
from datetime import datetime, timezone
from flask import request, current_app
from sqlalchemy.exc import SQLAlchemyError
from ..extensions import db
from ..errors import ConflictError, EmptyCartError, UpstreamUnavailable
from ..model import CartLine, Order, Stock
from ..model.order import ORDER_STATUSES
from ..cart.context import get_shopping_session
from ..services.pricing import compute_totals
from ..utils.api import ok, err
from ..utils.decorators import _current_user, admin_required, login_required
from . import bp

def _gen_order_code():
    # timestamp based; unique enough for a single storefront
    return "ORD-" + datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S%f")

def _line_snapshot(item):
    return {
        "product_id": item.product_id,
        "name": item.product_name,
        "size_id": item.size_id,
        "size": item.size_name,
        "unit_price": float(item.unit_price),
        "quantity": item.quantity,
        "line_total": float(item.line_total()),
    }

@bp.post("/checkout")
@login_required
def checkout():
    """
    Turns the caller's server cart into a pending order.
    The applied coupon is re-validated here; stock is checked and decremented
    in the same transaction that empties the cart.
    """
    shopping = get_shopping_session()
    if shopping.cart.is_empty:
        raise EmptyCartError("Your cart is empty")

    # current coupon terms, re-fetched
    coupon = shopping.revalidate_coupon()
    items = shopping.cart.snapshot()
    totals = compute_totals(items, coupon)

    try:
        pids = {i.product_id for i in items}
        rows = (
            Stock.query
            .filter(Stock.product_id.in_(pids))
            .with_for_update()
            .all()
        )
        smap = {(s.product_id, s.size_id): s for s in rows}

        for it in items:
            row = smap.get(it.key)
            if row is None or (row.quantity or 0) < it.quantity:
                raise ConflictError(f"{it.product_name} ({it.size_name}) is out of stock")

        order = Order(
            code=_gen_order_code(),
            status="pending",
            user_id=shopping.account_id,
            items_json=[_line_snapshot(i) for i in items],
            subtotal=totals.subtotal,
            discount=totals.discount,
            total=totals.total,
            coupon_code=coupon.code if coupon else None,
        )
        db.session.add(order)

        for it in items:
            smap[it.key].quantity -= it.quantity
        CartLine.query.filter_by(user_id=shopping.account_id).delete()

        db.session.commit()
    except ConflictError:
        db.session.rollback()
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception("checkout failed")
        raise UpstreamUnavailable() from e

    shopping.reset()
    current_app.logger.info("order %s created total=%s", order.code, order.total)

    resp = ok("Order created", {"order": order.as_api()}, 201)
    resp.headers["X-Order-Id"] = str(order.id)
    return resp

@bp.get("")
@admin_required
def list_orders():
    items = Order.query.order_by(Order.created_at.desc(), Order.id.desc()).all()
    return ok("Orders fetched", {"items": [o.as_api() for o in items]})

@bp.get("/mine")
@login_required
def my_orders():
    user = _current_user()
    items = (
        Order.query.filter_by(user_id=user.id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )
    return ok("Orders fetched", {"items": [o.as_api() for o in items]})

@bp.put("/<int:oid>")
@admin_required
def update_order(oid: int):
    order = db.session.get(Order, oid)
    if not order:
        return err("Order not found", 404)
    status = ((request.get_json(silent=True) or {}).get("status") or "").strip().lower()
    if status not in ORDER_STATUSES:
        return err(f"status must be one of {', '.join(ORDER_STATUSES)}", 422)
    order.status = status
    db.session.commit()
    return ok("Order updated", {"order": order.as_api()})
