# --- category/routes.py ---
from flask import request
from ..model import Category, Product
from ..extensions import db
from ..utils.api import ok, err
from ..utils.decorators import admin_required
from ..product.routes import slugify
from . import bp

# ------------------------ CATEGORY ROUTES ------------------------

@bp.get("")
def list_categories():
    items = Category.query.filter(Category.active.is_(True)).order_by(Category.name).all()
    return ok("Categories fetched", {"items": [c.as_dict() for c in items]})


@bp.post("")
@admin_required
def create_category():
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip()
    if not name:
        return err("name required", 422)
    if Category.query.filter(Category.name.ilike(name)).first():
        return err("category name already exists", 409)
    c = Category(name=name, slug=(data.get("slug") or slugify(name)), active=bool(data.get("active", True)))
    db.session.add(c)
    db.session.commit()
    return ok("Category created", {"category": c.as_dict()}, 201)


@bp.delete("/<int:cid>")
@admin_required
def delete_category(cid):
    if Product.query.filter_by(category_id=cid).first():
        return err("cannot delete: category has products", 409)
    c = db.session.get(Category, cid)
    if not c:
        return err("category not found", 404)
    db.session.delete(c)
    db.session.commit()
    return ok("Category deleted", {"id": cid})
