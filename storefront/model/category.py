# --- storefront/model/category.py ---
from ..extensions import db

class Category(db.Model):
    __tablename__ = "categories"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    slug = db.Column(db.String(140), index=True)
    active = db.Column(db.Boolean, nullable=False, default=True)
    products = db.relationship(
        "Product",
        backref="category",
        lazy=True
        )

    def as_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "active": self.active,
            }
