from datetime import date, timedelta
from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token
from werkzeug.security import generate_password_hash

from storefront import create_app
from storefront.extensions import db
from storefront.model import Category, Coupon, Product, Size, Stock, User
from storefront.services.coupon_service import AppliedCoupon


TODAY = date(2026, 3, 14)


class FakePersistence:
    """In-memory persistence collaborator; records calls and can be told to fail."""

    def __init__(self):
        self.coupons = {}
        self.lines = {}
        self.calls = []
        self.fail_with = None
        self._next_id = 1

    def _maybe_fail(self):
        if self.fail_with is not None:
            raise self.fail_with

    def get_coupon(self, code, today):
        self.calls.append(("get_coupon", code))
        self._maybe_fail()
        return self.coupons.get(code)

    def upsert_cart_line(self, account_id, product_id, size_id, quantity):
        self.calls.append(("upsert", account_id, product_id, size_id, quantity))
        self._maybe_fail()
        for line in self.lines.values():
            if (line["account_id"], line["product_id"], line["size_id"]) == (account_id, product_id, size_id):
                line["quantity"] = quantity
                return _Line(line)
        line = {
            "id": self._next_id, "account_id": account_id, "product_id": product_id,
            "size_id": size_id, "quantity": quantity, "product_name": f"Product {product_id}",
            "unit_price": Decimal("10.00"), "size_name": f"S{size_id}", "image_url": None,
        }
        self.lines[self._next_id] = line
        self._next_id += 1
        return _Line(line)

    def delete_cart_line(self, line_id, account_id):
        self.calls.append(("delete", int(line_id), account_id))
        self._maybe_fail()
        line = self.lines.get(int(line_id))
        if line and line["account_id"] == account_id:
            del self.lines[int(line_id)]

    def list_cart_lines(self, account_id):
        self.calls.append(("list", account_id))
        self._maybe_fail()
        return [_Line(l) for l in self.lines.values() if l["account_id"] == account_id]


class _Line:
    def __init__(self, data):
        self.__dict__.update(data)


class FakeStorage:
    """Session storage collaborator without Flask."""

    def __init__(self, items=None, coupon=None):
        self.items = list(items or [])
        self.coupon = coupon

    def load_guest_cart(self):
        return list(self.items)

    def save_guest_cart(self, items):
        self.items = list(items)

    def load_coupon(self):
        return self.coupon

    def save_coupon(self, coupon):
        self.coupon = coupon


def coupon(code="SAVE10", kind="percentage", value="10", minimum_spend="0",
           expires_on=TODAY + timedelta(days=30), active=True):
    return AppliedCoupon(
        code=code, kind=kind, value=Decimal(value), minimum_spend=Decimal(minimum_spend),
        expires_on=expires_on, active=active,
    )


@pytest.fixture
def fake_persistence():
    return FakePersistence()


@pytest.fixture
def fake_storage():
    return FakeStorage()


@pytest.fixture
def make_coupon():
    return coupon


# ---- Flask app -----------------------------------------------------------

@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "SECRET_KEY": "test-session-secret",
        "JWT_SECRET_KEY": "test-jwt-secret-that-is-long-enough-for-hs256",
        "UPLOAD_FOLDER": str(tmp_path / "uploads"),
        "LOG_LEVEL": "WARNING",
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _make_user(app, email, role="customer", password="secret123", active=True):
    with app.app_context():
        user = User(
            name=email.split("@")[0], email=email, role=role, active=active,
            password_hash=generate_password_hash(password),
        )
        db.session.add(user)
        db.session.commit()
        token = create_access_token(identity=str(user.id), additional_claims={"role": role})
        return user.id, token


@pytest.fixture
def admin(app):
    user_id, token = _make_user(app, "admin@example.com", role="admin")
    return {"id": user_id, "headers": {"Authorization": f"Bearer {token}"}}


@pytest.fixture
def customer(app):
    user_id, token = _make_user(app, "ana@example.com")
    return {"id": user_id, "headers": {"Authorization": f"Bearer {token}"}}


@pytest.fixture
def catalog(app):
    """Two products; 'tee' has sizes P (5 in stock) and M (sold out), 'pants' has P (2)."""
    with app.app_context():
        cat = Category(name="Camisetas", slug="camisetas")
        small, medium = Size(name="P", sort_order=1), Size(name="M", sort_order=2)
        db.session.add_all([cat, small, medium])
        db.session.flush()

        tee = Product(name="Camiseta Básica", slug="camiseta-basica", price=Decimal("100.00"),
                      category_id=cat.id, gender="unisex", featured=True, active=True)
        pants = Product(name="Calça Jeans", slug="calca-jeans", price=Decimal("50.00"),
                        gender="male", active=True)
        hidden = Product(name="Old Jacket", slug="old-jacket", price=Decimal("10.00"), active=False)
        db.session.add_all([tee, pants, hidden])
        db.session.flush()

        db.session.add_all([
            Stock(product_id=tee.id, size_id=small.id, quantity=5),
            Stock(product_id=tee.id, size_id=medium.id, quantity=0),
            Stock(product_id=pants.id, size_id=small.id, quantity=2),
        ])
        db.session.commit()
        return {
            "category": cat.id, "small": small.id, "medium": medium.id,
            "tee": tee.id, "pants": pants.id, "hidden": hidden.id,
        }


@pytest.fixture
def db_coupon(app):
    def _create(code="SAVE10", kind="percentage", value="10", minimum_spend="0",
                expires_on=None, active=True):
        with app.app_context():
            c = Coupon(
                code=code, kind=kind, value=Decimal(value), minimum_spend=Decimal(minimum_spend),
                expires_on=expires_on or (date.today() + timedelta(days=30)), active=active,
            )
            db.session.add(c)
            db.session.commit()
            return c.id
    return _create
