from flask import request
from ..model import Size
from ..extensions import db
from ..utils.api import ok, err
from ..utils.decorators import admin_required
from . import bp

@bp.get("")
def list_sizes():
    items = Size.query.order_by(Size.sort_order, Size.id).all()
    return ok("Sizes fetched", {"items": [s.as_dict() for s in items]})

@bp.post("")
@admin_required
def create_size():
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip().upper()
    if not name:
        return err("name required", 422)
    if Size.query.filter_by(name=name).first():
        return err("size already exists", 409)
    try:
        sort_order = int(data.get("sort_order") or 0)
    except (TypeError, ValueError):
        return err("sort_order must be an integer", 422)
    s = Size(name=name, sort_order=sort_order)
    db.session.add(s)
    db.session.commit()
    return ok("Size created", {"size": s.as_dict()}, 201)
