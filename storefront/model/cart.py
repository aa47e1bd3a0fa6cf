# storefront/model/cart.py
from sqlalchemy.sql import func
from ..extensions import db

class CartLine(db.Model):
    """Server-side cart row of an authenticated account; one row per (user, product, size)."""
    __tablename__ = "cart_lines"
    __table_args__ = (
        db.UniqueConstraint("user_id", "product_id", "size_id", name="uq_cart_line_key"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    size_id = db.Column(db.Integer, db.ForeignKey("sizes.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    product = db.relationship("Product", lazy="joined")
    size = db.relationship("Size", lazy="joined")
