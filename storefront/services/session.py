# storefront/services/session.py
from __future__ import annotations

import logging

from ..errors import ValidationError
from .cart_backend import select_backend
from .cart_store import CartStore, check_quantity
from .coupon_service import CouponValidator
from .pricing import compute_totals, subtotal_of

log = logging.getLogger(__name__)


class SessionClosed(ValidationError):
    message = "Shopping session has ended"


class ShoppingSession:
    """
    Cart, applied coupon and account of one shopper.

    Built with ``start()`` at the beginning of a request (or any other unit of
    work) and torn down with ``close()`` on logout. Every cart mutation is
    persisted through the backend before the in-memory cart changes, so a
    failing backend leaves the cart as it was.
    """

    def __init__(self, account_id, backend, storage, validator, cart):
        self.account_id = account_id
        self.backend = backend
        self.storage = storage
        self.validator = validator
        self.cart = cart
        self.closed = False

    @classmethod
    def start(cls, account_id, persistence, storage, validator=None):
        backend = select_backend(account_id, persistence, storage)
        coupon = storage.load_coupon()
        cart = CartStore(backend.load(), coupon=coupon)
        # the server cart may have changed since the coupon was applied
        if cart.applied_coupon is not None and cart.applied_coupon.minimum_spend > subtotal_of(cart.snapshot()):
            cart.clear_coupon()
        if coupon is not None and cart.applied_coupon is None:
            storage.save_coupon(None)
        log.debug("shopping session started account=%s backend=%s items=%d",
                  account_id, backend.kind, len(cart))
        return cls(
            account_id=account_id,
            backend=backend,
            storage=storage,
            validator=validator or CouponValidator(persistence),
            cart=cart,
        )

    @property
    def authenticated(self) -> bool:
        return self.account_id is not None

    def _ensure_open(self):
        if self.closed:
            raise SessionClosed()

    def _persist(self):
        self.backend.save(self.cart.snapshot())
        self.storage.save_coupon(self.cart.applied_coupon)

    # ---- cart ----------------------------------------------------------------

    def add_item(self, product_id, size_id, unit_price, name, quantity=1,
                 *, size_name=None, image_url=None):
        self._ensure_open()
        qty = check_quantity(quantity)
        existing = self.cart.find(product_id, size_id)
        target = (existing.quantity if existing else 0) + qty
        line_id = self.backend.upsert_line(product_id, size_id, target)
        item = self.cart.add_item(
            product_id, size_id, unit_price, name, qty,
            size_name=size_name, image_url=image_url, line_id=line_id,
        )
        self._persist()
        return item

    def update_quantity(self, line_id, delta):
        self._ensure_open()
        item = self.cart.get(line_id)
        if item is None:
            return None
        target = item.quantity + int(delta)
        if target <= 0:
            self.remove_item(line_id)
            return None
        self.backend.upsert_line(item.product_id, item.size_id, target)
        item = self.cart.update_quantity(line_id, delta)
        self._persist()
        return item

    def remove_item(self, line_id):
        self._ensure_open()
        item = self.cart.get(line_id)
        if item is None:
            return None
        self.backend.delete_line(item.line_id)
        removed = self.cart.remove_item(line_id)
        self._persist()
        return removed

    # ---- coupon --------------------------------------------------------------

    def apply_coupon(self, code):
        """Validate and apply; on failure nothing changes."""
        self._ensure_open()
        subtotal = self.totals().subtotal
        coupon = self.validator.validate(code, subtotal, item_count=len(self.cart))
        self.cart.apply_coupon(coupon)
        self.storage.save_coupon(coupon)
        log.info("coupon %s applied account=%s", coupon.code, self.account_id)
        return coupon

    def clear_coupon(self):
        self._ensure_open()
        self.cart.clear_coupon()
        self.storage.save_coupon(None)

    def revalidate_coupon(self):
        """
        Re-check the applied coupon against current data and swap in its
        current terms. Raises when it no longer applies; the stale coupon is
        left in place so the shopper can remove it.
        """
        coupon = self.cart.applied_coupon
        if coupon is None:
            return None
        fresh = self.validator.validate(coupon.code, self.totals().subtotal, item_count=len(self.cart))
        self.cart.apply_coupon(fresh)
        self.storage.save_coupon(fresh)
        return fresh

    # ---- read ----------------------------------------------------------------

    def totals(self):
        return compute_totals(self.cart.snapshot(), self.cart.applied_coupon)

    def as_api(self):
        coupon = self.cart.applied_coupon
        return {
            "items": [i.as_api() for i in self.cart.snapshot()],
            "totals": self.totals().as_api(),
            "coupon": coupon.as_api() if coupon else None,
            "state": self.cart.state.value,
            "backend": self.backend.kind,
        }

    # ---- lifecycle -----------------------------------------------------------

    def reset(self):
        """Forget the in-memory cart and coupon after the server cart has been emptied elsewhere."""
        self.cart = CartStore()
        self.storage.save_coupon(None)

    def close(self):
        if self.closed:
            return
        self.storage.save_coupon(None)
        self.cart = CartStore()
        self.closed = True
        log.debug("shopping session closed account=%s", self.account_id)
