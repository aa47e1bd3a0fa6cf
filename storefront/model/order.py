from datetime import datetime
from ..extensions import db

ORDER_STATUSES = ("pending", "paid", "shipped", "delivered", "cancelled")

class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(32), unique=True, index=True)  # e.g., "ORD-20251022-..."
    status = db.Column(db.String(20), default="pending", index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    # line snapshot at checkout time: [{product_id, name, size, unit_price, quantity, line_total}]
    items_json = db.Column(db.JSON, nullable=False, default=list)

    # Money snapshot
    subtotal = db.Column(db.Numeric(12, 2))
    discount = db.Column(db.Numeric(12, 2))
    total = db.Column(db.Numeric(12, 2))
    coupon_code = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    user = db.relationship("User", lazy="joined")

    def as_api(self):
        return {
            "id": self.id,
            "code": self.code,
            "status": self.status,
            "user": self.user.as_dict() if self.user else None,
            "items": list(self.items_json or []),
            "subtotal": float(self.subtotal or 0),
            "discount": float(self.discount or 0),
            "total": float(self.total or 0),
            "coupon_code": self.coupon_code,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
