# --- storefront/model/coupon.py ---

from ..extensions import db
from sqlalchemy.sql import func
from ..services.coupon_service import AppliedCoupon
from ..utils.money import D

class Coupon(db.Model):
    __tablename__ = "coupons"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(64), unique=True, nullable=False, index=True)   # stored upper-case

    # "percentage" or "fixed"
    kind = db.Column(db.String(16), nullable=False, default="percentage")
    value = db.Column(db.Numeric(12, 2), nullable=False)
    minimum_spend = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    expires_on = db.Column(db.Date, nullable=False, index=True)
    active = db.Column(db.Boolean, default=True, index=True)

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    def to_applied(self) -> AppliedCoupon:
        return AppliedCoupon(
            code=self.code,
            kind=self.kind,
            value=D(self.value),
            minimum_spend=D(self.minimum_spend or 0),
            expires_on=self.expires_on,
            active=bool(self.active),
        )

    def as_api(self):
        return {
            "id": self.id,
            "code": self.code,
            "kind": self.kind,
            "value": float(self.value),
            "minimum_spend": float(self.minimum_spend or 0),
            "expires_on": self.expires_on.isoformat() if self.expires_on else None,
            "active": bool(self.active),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
