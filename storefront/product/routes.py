from flask import request, url_for, current_app
from werkzeug.utils import secure_filename
from sqlalchemy import desc
from ..extensions import db
from ..errors import NotFoundError, ValidationError
from ..model import Product, Stock, Size, Category
from ..utils.api import ok, err
from ..utils.decorators import admin_required
from ..utils.money import parse_money
from . import bp, upload_bp
import os
import re
import time
import unicodedata

# ---------- helpers ----------
ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp"}

def slugify(text):
    text = unicodedata.normalize("NFD", text or "")
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r"[^a-z0-9]+", "-", text.strip().lower())
    return text.strip("-")

def _allowed(filename: str) -> bool:
    return "." in filename and filename.rsplit(".", 1)[1].lower() in ALLOWED_EXTENSIONS

def _save_file(file_storage):
    """Save FileStorage under the upload folder with a timestamped name; returns (public_url, abs_path)."""
    if not file_storage or not file_storage.filename:
        return None, None
    if not _allowed(file_storage.filename):
        raise ValidationError("Unsupported file type", field="image")

    filename = f"{int(time.time() * 1000)}_{secure_filename(file_storage.filename)}"
    upload_dir = current_app.config["UPLOAD_FOLDER"]
    os.makedirs(upload_dir, exist_ok=True)

    abs_path = os.path.join(upload_dir, filename)
    base, ext = os.path.splitext(filename)
    counter = 1
    while os.path.exists(abs_path):
        filename = f"{base}-{counter}{ext}"
        abs_path = os.path.join(upload_dir, filename)
        counter += 1

    file_storage.save(abs_path)
    public_url = f"/{current_app.config['UPLOAD_SUBDIR']}/{filename}"
    return public_url, abs_path

def _parse_bool(v, default=False):
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() in {"1", "true", "yes", "y", "on"}

def _parse_opt_int(v):
    if v is None:
        return None
    if isinstance(v, str) and v.strip().lower() in {"", "null"}:
        return None
    try:
        return int(v)
    except (TypeError, ValueError):
        return None

def _price(data, field, required=False):
    if data.get(field) in (None, ""):
        if required:
            raise ValidationError(f"{field} is required", field=field)
        return None
    value = parse_money(data.get(field))
    if value is None or value < 0:
        raise ValidationError(f"{field} must be a number >= 0", field=field)
    return value

def _category_id(data):
    cid = _parse_opt_int(data.get("category_id"))
    if cid is not None and not db.session.get(Category, cid):
        raise NotFoundError(f"Category {cid} not found")
    return cid

def _active_product_or_404(pid) -> Product:
    product = db.session.get(Product, pid)
    if not product or not product.active:
        raise NotFoundError("Product not found")
    return product

_BOOL_FIELDS = ("featured", "trending", "is_new", "active")
_TEXT_FIELDS = ("description", "color", "gender", "image_url")

# ---------- routes ----------
# GET /api/products
@bp.get("")
def list_products():
    """
    Query params:
      category  -> category id
      gender    -> exact match
      search    -> substring match on name
      featured / trending / new -> "true" narrows to flagged products
    """
    query = Product.query.filter(Product.active.is_(True))

    category_id = _parse_opt_int(request.args.get("category"))
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    gender = (request.args.get("gender") or "").strip()
    if gender:
        query = query.filter(Product.gender == gender)
    search = (request.args.get("search") or "").strip()
    if search:
        query = query.filter(Product.name.ilike(f"%{search}%"))
    if request.args.get("featured") == "true":
        query = query.filter(Product.featured.is_(True))
    if request.args.get("trending") == "true":
        query = query.filter(Product.trending.is_(True))
    if request.args.get("new") == "true":
        query = query.filter(Product.is_new.is_(True))

    items = query.order_by(desc(Product.created_at), desc(Product.id)).all()
    return ok("Products fetched", {"items": [p.as_api() for p in items]})

# GET /api/products/<id>
@bp.get("/<int:pid>")
def get_product(pid):
    return ok("Product fetched", _active_product_or_404(pid).as_api())

# POST /api/products
@bp.post("")
@admin_required
def create_product():
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip()
    if not name:
        return err("name is required", 422)

    product = Product(
        name=name,
        slug=slugify(name),
        price=_price(data, "price", required=True),
        old_price=_price(data, "old_price"),
        extra_images=list(data.get("extra_images") or []),
        category_id=_category_id(data),
    )
    for field in _TEXT_FIELDS:
        setattr(product, field, data.get(field))
    for field in _BOOL_FIELDS:
        setattr(product, field, _parse_bool(data.get(field), default=(field == "active")))

    db.session.add(product)
    db.session.commit()
    current_app.logger.info("product created id=%s", product.id)

    resp = ok("Product created", product.as_api(), status_code=201)
    resp.headers["Location"] = url_for("product.get_product", pid=product.id, _external=True)
    return resp

# PUT /api/products/<id>
@bp.put("/<int:pid>")
@admin_required
def update_product(pid):
    product = db.session.get(Product, pid)
    if not product:
        return err("Product not found", 404)
    data = request.get_json(silent=True) or {}

    if "name" in data:
        name = (data.get("name") or "").strip()
        if not name:
            return err("name cannot be empty", 422)
        product.name = name
        product.slug = slugify(name)
    if "price" in data:
        product.price = _price(data, "price", required=True)
    if "old_price" in data:
        product.old_price = _price(data, "old_price")
    if "category_id" in data:
        product.category_id = _category_id(data)
    if "extra_images" in data:
        product.extra_images = list(data.get("extra_images") or [])
    for field in _TEXT_FIELDS:
        if field in data:
            setattr(product, field, data.get(field))
    for field in _BOOL_FIELDS:
        if field in data:
            setattr(product, field, _parse_bool(data.get(field)))

    db.session.commit()
    return ok("Product updated", product.as_api())

# DELETE /api/products/<id>
@bp.delete("/<int:pid>")
@admin_required
def delete_product(pid):
    product = db.session.get(Product, pid)
    if not product:
        return err("Product not found", 404)
    db.session.delete(product)
    db.session.commit()
    return ok(f"Product {pid} deleted", {"id": pid})

# ---------- stock per size ----------
# GET /api/products/<id>/stock
@bp.get("/<int:pid>/stock")
def product_stock(pid):
    product = _active_product_or_404(pid)
    rows = sorted(product.stock, key=lambda s: (s.size.sort_order if s.size else 0, s.size_id))
    return ok("Stock fetched", {"items": [s.as_api() for s in rows]})

# POST /api/products/<id>/stock/batch
@bp.post("/<int:pid>/stock/batch")
@admin_required
def upsert_stock_batch(pid):
    """
    Body: { "sizes": [{ "size_id": int, "quantity": int }, ...] }
    Existing (product, size) rows are overwritten.
    """
    product = db.session.get(Product, pid)
    if not product:
        return err("Product not found", 404)
    entries = (request.get_json(silent=True) or {}).get("sizes") or []
    if not isinstance(entries, list) or not entries:
        return err("sizes must be a non-empty list", 422)

    by_size = {s.size_id: s for s in product.stock}
    for entry in entries:
        size_id = _parse_opt_int((entry or {}).get("size_id"))
        qty = _parse_opt_int((entry or {}).get("quantity")) or 0
        if size_id is None or not db.session.get(Size, size_id):
            return err(f"size {entry!r} not found", 404)
        if qty < 0:
            return err("quantity must be >= 0", 422)
        row = by_size.get(size_id)
        if row:
            row.quantity = qty
        else:
            row = Stock(product_id=product.id, size_id=size_id, quantity=qty)
            product.stock.append(row)
            by_size[size_id] = row

    db.session.commit()
    return ok("Stock updated", {"items": [s.as_api() for s in product.stock]}, status_code=201)

# ---------- image upload ----------
# POST /api/upload
@upload_bp.post("")
@admin_required
def upload_image():
    file = request.files.get("image")
    if not file or not file.filename:
        return err("No file uploaded", 400)
    public_url, _ = _save_file(file)
    return ok("Image uploaded", {"url": public_url, "name": os.path.basename(public_url)}, status_code=201)
