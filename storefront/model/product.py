# storefront/model/product.py
from ..extensions import db
from sqlalchemy.sql import func

class Product(db.Model):
    __tablename__ = "products"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    slug = db.Column(db.String(255), index=True)
    description = db.Column(db.Text)

    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    old_price = db.Column(db.Numeric(12, 2), nullable=True)     # shown struck-through
    color = db.Column(db.String(60))
    gender = db.Column(db.String(20), index=True)               # "female" | "male" | "unisex"

    image_url = db.Column(db.String(1024))                      # main image
    extra_images = db.Column(db.JSON, default=list)

    featured = db.Column(db.Boolean, default=False)
    trending = db.Column(db.Boolean, default=False)
    is_new = db.Column(db.Boolean, default=False)
    active = db.Column(db.Boolean, default=True, index=True)

    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True)

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    stock = db.relationship(
        "Stock",
        backref="product",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def as_api(self):
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "price": float(self.price or 0),
            "old_price": float(self.old_price) if self.old_price is not None else None,
            "color": self.color,
            "gender": self.gender,
            "image_url": self.image_url,
            "extra_images": list(self.extra_images or []),
            "featured": bool(self.featured),
            "trending": bool(self.trending),
            "is_new": bool(self.is_new),
            "active": bool(self.active),
            "category": self.category.as_dict() if self.category else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

class Stock(db.Model):
    __tablename__ = "stock"
    __table_args__ = (db.UniqueConstraint("product_id", "size_id", name="uq_stock_product_size"),)

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    size_id = db.Column(db.Integer, db.ForeignKey("sizes.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False, default=0)

    size = db.relationship("Size", lazy="joined")

    def as_api(self):
        return {
            "id": self.id,
            "product_id": self.product_id,
            "size": self.size.as_dict() if self.size else None,
            "quantity": self.quantity,
            # the storefront disables size buttons for sold-out sizes
            "available": (self.quantity or 0) > 0,
        }
