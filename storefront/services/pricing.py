# storefront/services/pricing.py
from __future__ import annotations

from dataclasses import dataclass

from ..utils.money import D, Money, ZERO, round_money
from .cart_store import CartState


@dataclass(frozen=True)
class Totals:
    subtotal: Money
    discount: Money
    total: Money
    item_count: int

    def as_api(self):
        return {
            "subtotal": float(self.subtotal),
            "discount": float(self.discount),
            "total": float(self.total),
            "item_count": self.item_count,
        }


def subtotal_of(items) -> Money:
    return round_money(sum((D(i.unit_price) * i.quantity for i in items), ZERO))


def discount_for(subtotal: Money, coupon) -> Money:
    if coupon is None:
        return ZERO
    if coupon.kind == "percentage":
        return round_money(subtotal * D(coupon.value) / D(100))
    if coupon.kind == "fixed":
        # reported as-is even when larger than the subtotal; total is clamped instead
        return round_money(coupon.value)
    return ZERO


def compute_totals(items, coupon=None) -> Totals:
    """
    Subtotal, discount and total for a cart snapshot.

      subtotal = sum(unit_price * quantity)
      discount = percentage of subtotal, or the fixed amount
      total    = max(0, subtotal - discount)
    """
    items = tuple(items)
    subtotal = subtotal_of(items)
    discount = discount_for(subtotal, coupon)
    total = max(ZERO, round_money(subtotal - discount))
    return Totals(
        subtotal=subtotal,
        discount=discount,
        total=total,
        item_count=sum(i.quantity for i in items),
    )


def cart_state(items, coupon=None) -> CartState:
    if not tuple(items):
        return CartState.EMPTY
    if coupon is None:
        return CartState.NON_EMPTY_NO_COUPON
    return CartState.NON_EMPTY_WITH_COUPON
