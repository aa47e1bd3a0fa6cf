# storefront/services/persistence.py
from __future__ import annotations

import functools
import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from ..errors import NotFoundError, UpstreamUnavailable
from ..extensions import db
from ..model import CartLine as CartLineRow, Coupon, Product, Size
from ..utils.money import D, Money

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CartLine:
    id: int
    account_id: int
    product_id: int
    size_id: int
    quantity: int
    product_name: str
    unit_price: Money
    size_name: str | None
    image_url: str | None = None


@dataclass(frozen=True)
class ProductSnapshot:
    product_id: int
    name: str
    unit_price: Money
    size_id: int
    size_name: str
    image_url: str | None = None


def _line_from_row(row: CartLineRow) -> CartLine:
    return CartLine(
        id=row.id,
        account_id=row.user_id,
        product_id=row.product_id,
        size_id=row.size_id,
        quantity=row.quantity,
        product_name=row.product.name if row.product else "",
        unit_price=D(row.product.price if row.product else 0),
        size_name=row.size.name if row.size else None,
        image_url=row.product.image_url if row.product else None,
    )


def _guarded(fn):
    """Map any database failure to UpstreamUnavailable after rolling back."""
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except SQLAlchemyError as e:
            db.session.rollback()
            log.exception("persistence call %s failed", fn.__name__)
            raise UpstreamUnavailable() from e
    return wrapper


class SqlPersistence:
    """Persistence collaborator backed by the Flask-SQLAlchemy session."""

    @_guarded
    def get_coupon(self, code: str, today):
        row = (
            Coupon.query
            .filter(Coupon.code == code)
            .filter(Coupon.active.is_(True))
            .filter(Coupon.expires_on >= today)
            .first()
        )
        return row.to_applied() if row else None

    @_guarded
    def get_product_snapshot(self, product_id, size_id) -> ProductSnapshot:
        product = db.session.get(Product, product_id)
        if not product or product.active is False:
            raise NotFoundError("product not found or inactive")
        size = db.session.get(Size, size_id)
        if not size:
            raise NotFoundError("size not found")
        return ProductSnapshot(
            product_id=product.id,
            name=product.name,
            unit_price=D(product.price),
            size_id=size.id,
            size_name=size.name,
            image_url=product.image_url,
        )

    @_guarded
    def upsert_cart_line(self, account_id, product_id, size_id, quantity) -> CartLine:
        row = CartLineRow.query.filter_by(
            user_id=account_id, product_id=product_id, size_id=size_id
        ).first()
        if row:
            row.quantity = quantity
        else:
            row = CartLineRow(
                user_id=account_id, product_id=product_id, size_id=size_id, quantity=quantity
            )
            db.session.add(row)
        db.session.commit()
        return _line_from_row(row)

    @_guarded
    def delete_cart_line(self, line_id, account_id) -> None:
        CartLineRow.query.filter_by(id=int(line_id), user_id=account_id).delete()
        db.session.commit()

    @_guarded
    def list_cart_lines(self, account_id) -> list[CartLine]:
        rows = (
            CartLineRow.query
            .filter_by(user_id=account_id)
            .order_by(CartLineRow.id.asc())
            .all()
        )
        return [_line_from_row(r) for r in rows]

