# storefront/services/cart_backend.py
from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from flask import session

from .cart_store import CartItem
from .coupon_service import AppliedCoupon

log = logging.getLogger(__name__)

GUEST_CART_KEY = "guest_cart"
COUPON_KEY = "applied_coupon"


class SessionCartStorage:
    """
    Session storage collaborator: the guest cart and the applied coupon live
    in Flask's signed cookie session, the server-side stand-in for browser
    local storage.

    The coupon slot is kept per cart owner, so a coupon applied to the guest
    cart never shows up on an account's server cart.
    """

    def __init__(self, account_id=None):
        self.account_id = account_id

    @property
    def coupon_key(self) -> str:
        if self.account_id is None:
            return COUPON_KEY
        return f"{COUPON_KEY}:{self.account_id}"

    def load_guest_cart(self) -> list[CartItem]:
        raw = session.get(GUEST_CART_KEY) or []
        items = []
        for entry in raw:
            try:
                items.append(CartItem.from_dict(entry))
            except (KeyError, TypeError, ValueError, ArithmeticError):
                log.warning("dropping unreadable guest cart entry: %r", entry)
        return items

    def save_guest_cart(self, items) -> None:
        session[GUEST_CART_KEY] = [i.to_dict() for i in items]

    def load_coupon(self) -> AppliedCoupon | None:
        raw = session.get(self.coupon_key)
        if not raw:
            return None
        try:
            return AppliedCoupon.from_dict(raw)
        except (KeyError, TypeError, ValueError, ArithmeticError):
            log.warning("dropping unreadable applied coupon: %r", raw)
            return None

    def save_coupon(self, coupon: AppliedCoupon | None) -> None:
        if coupon is None:
            session.pop(self.coupon_key, None)
        else:
            session[self.coupon_key] = coupon.to_dict()


class CartBackend(ABC):
    """Where a session's cart lines are persisted."""

    kind = "abstract"

    @abstractmethod
    def load(self) -> list[CartItem]:
        ...

    @abstractmethod
    def upsert_line(self, product_id, size_id, quantity) -> str | None:
        """Persist the absolute quantity for a (product, size) key; returns the line id if the backend assigns one."""

    @abstractmethod
    def delete_line(self, line_id) -> None:
        ...

    def save(self, items) -> None:
        """Called with the full cart after every successful mutation."""


class LocalCartBackend(CartBackend):
    kind = "local"

    def __init__(self, storage: SessionCartStorage):
        self.storage = storage

    def load(self):
        return self.storage.load_guest_cart()

    def upsert_line(self, product_id, size_id, quantity):
        return None

    def delete_line(self, line_id):
        return None

    def save(self, items):
        self.storage.save_guest_cart(items)


class RemoteCartBackend(CartBackend):
    kind = "remote"

    def __init__(self, persistence, account_id: int):
        self.persistence = persistence
        self.account_id = account_id

    def load(self):
        return [
            CartItem(
                line_id=str(line.id),
                product_id=line.product_id,
                product_name=line.product_name,
                unit_price=line.unit_price,
                size_id=line.size_id,
                size_name=line.size_name,
                quantity=line.quantity,
                image_url=line.image_url,
            )
            for line in self.persistence.list_cart_lines(self.account_id)
        ]

    def upsert_line(self, product_id, size_id, quantity):
        line = self.persistence.upsert_cart_line(self.account_id, product_id, size_id, quantity)
        return str(line.id)

    def delete_line(self, line_id):
        self.persistence.delete_cart_line(line_id, self.account_id)


def select_backend(account_id, persistence, storage) -> CartBackend:
    """Authenticated sessions use the server cart, guests the session cart."""
    if account_id is None:
        return LocalCartBackend(storage)
    return RemoteCartBackend(persistence, account_id)
