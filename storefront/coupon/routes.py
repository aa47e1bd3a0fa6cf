# storefront/coupon/routes.py
from __future__ import annotations
from datetime import date
from flask import request, current_app
from ..extensions import db
from ..errors import ValidationError
from ..model import Coupon
from ..services.coupon_service import COUPON_KINDS, CouponValidator, normalize_code
from ..services.persistence import SqlPersistence
from ..utils.api import ok, err
from ..utils.decorators import admin_required
from ..utils.money import parse_money
from . import bp

def _parse_date(s):
    if isinstance(s, date):
        return s
    if not isinstance(s, str):
        return None
    try:
        return date.fromisoformat(s.strip()[:10])
    except ValueError:
        return None

def _coupon_fields(data: dict, partial=False) -> dict:
    """Validated column values from an admin payload; `partial` allows missing fields (PUT)."""
    fields = {}

    if "code" in data or not partial:
        code = normalize_code(data.get("code"))
        if not code:
            raise ValidationError("code is required", field="code")
        fields["code"] = code

    if "kind" in data or not partial:
        kind = data.get("kind") or "percentage"
        if not isinstance(kind, str) or kind.strip().lower() not in COUPON_KINDS:
            raise ValidationError("kind must be 'percentage' or 'fixed'", field="kind")
        fields["kind"] = kind.strip().lower()

    if "value" in data or not partial:
        value = parse_money(data.get("value"))
        if value is None or value <= 0:
            raise ValidationError("value must be > 0", field="value")
        fields["value"] = value

    if "minimum_spend" in data:
        minimum = parse_money(data.get("minimum_spend") if data.get("minimum_spend") is not None else 0)
        if minimum is None or minimum < 0:
            raise ValidationError("minimum_spend must be >= 0", field="minimum_spend")
        fields["minimum_spend"] = minimum

    if "expires_on" in data or not partial:
        expires_on = _parse_date(data.get("expires_on"))
        if expires_on is None:
            raise ValidationError("expires_on must be a YYYY-MM-DD date", field="expires_on")
        fields["expires_on"] = expires_on

    if "active" in data:
        fields["active"] = bool(data.get("active"))

    return fields

def _check_percentage(kind, value):
    if kind == "percentage" and value > 100:
        raise ValidationError("percentage coupon must be <= 100", field="value")

def _code_taken(code, exclude_id=None) -> bool:
    q = Coupon.query.filter(Coupon.code == code)
    if exclude_id is not None:
        q = q.filter(Coupon.id != exclude_id)
    return q.first() is not None

# ---- public ----------------------------------------------------------------

@bp.get("/validate/<code>")
def validate_coupon(code: str):
    """
    Public lookup of an active, unexpired coupon.
    Optional `?subtotal=` also enforces the minimum spend.
    """
    validator = CouponValidator(SqlPersistence())
    raw_subtotal = request.args.get("subtotal")
    if raw_subtotal is None:
        coupon = validator.lookup(code)
    else:
        subtotal = parse_money(raw_subtotal)
        if subtotal is None or subtotal < 0:
            raise ValidationError("subtotal must be a number >= 0", field="subtotal")
        coupon = validator.validate(code, subtotal)
    return ok("Coupon valid", {"coupon": coupon.as_api()})

# ---- admin -----------------------------------------------------------------

@bp.get("")
@admin_required
def list_coupons():
    items = Coupon.query.order_by(Coupon.created_at.desc(), Coupon.id.desc()).all()
    return ok("Coupons fetched", {"items": [c.as_api() for c in items]})

@bp.post("")
@admin_required
def create_coupon():
    fields = _coupon_fields(request.get_json(silent=True) or {})
    _check_percentage(fields["kind"], fields["value"])
    if _code_taken(fields["code"]):
        return err("Coupon code already exists", 409)

    c = Coupon(**fields)
    db.session.add(c)
    db.session.commit()
    current_app.logger.info("coupon %s created", c.code)
    return ok("Coupon created", c.as_api(), 201)

@bp.put("/<int:cid>")
@admin_required
def update_coupon(cid: int):
    c = db.session.get(Coupon, cid)
    if not c:
        return err("Coupon not found", 404)
    fields = _coupon_fields(request.get_json(silent=True) or {}, partial=True)
    _check_percentage(fields.get("kind", c.kind), fields.get("value", c.value))
    if "code" in fields and _code_taken(fields["code"], exclude_id=c.id):
        return err("Coupon code already exists", 409)

    for key, value in fields.items():
        setattr(c, key, value)
    db.session.commit()
    return ok("Coupon updated", c.as_api())

@bp.delete("/<int:cid>")
@admin_required
def delete_coupon(cid: int):
    c = db.session.get(Coupon, cid)
    if not c:
        return err("Coupon not found", 404)
    db.session.delete(c)
    db.session.commit()
    return ok("Coupon deleted", {"id": cid})
