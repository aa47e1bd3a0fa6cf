from flask import request
from sqlalchemy.exc import IntegrityError
from ..extensions import db
from ..model import Product, Size, Stock
from ..utils.api import ok, err
from ..utils.decorators import admin_required
from . import bp

def _to_int(v, default=None):
    try:
        return int(v)
    except (TypeError, ValueError):
        return default

# POST /api/stock
@bp.post("")
@admin_required
def create_stock():
    data = request.get_json(silent=True) or {}
    product_id = _to_int(data.get("product_id"))
    size_id = _to_int(data.get("size_id"))
    qty = _to_int(data.get("quantity"), 0)

    if product_id is None or not db.session.get(Product, product_id):
        return err("product not found", 404)
    if size_id is None or not db.session.get(Size, size_id):
        return err("size not found", 404)
    if qty is None or qty < 0:
        return err("quantity must be >= 0", 422)

    row = Stock(product_id=product_id, size_id=size_id, quantity=qty)
    db.session.add(row)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return err("stock for this product and size already exists", 409)
    return ok("Stock created", row.as_api(), status_code=201)

# PUT /api/stock/<id>
@bp.put("/<int:sid>")
@admin_required
def update_stock(sid):
    row = db.session.get(Stock, sid)
    if not row:
        return err("stock not found", 404)
    qty = _to_int((request.get_json(silent=True) or {}).get("quantity"))
    if qty is None or qty < 0:
        return err("quantity must be >= 0", 422)
    row.quantity = qty
    db.session.commit()
    return ok("Stock updated", row.as_api())

# DELETE /api/stock/<id>
@bp.delete("/<int:sid>")
@admin_required
def delete_stock(sid):
    row = db.session.get(Stock, sid)
    if not row:
        return err("stock not found", 404)
    db.session.delete(row)
    db.session.commit()
    return ok("Stock deleted", {"id": sid})
