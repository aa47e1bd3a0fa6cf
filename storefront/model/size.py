# --- storefront/model/size.py ---
from ..extensions import db

class Size(db.Model):
    __tablename__ = "sizes"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(20), nullable=False, unique=True)   # "P", "M", "G", "38" ...
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    def as_dict(self):
        return {"id": self.id, "name": self.name, "sort_order": self.sort_order}
