# storefront/services/coupon_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from ..errors import (
    CouponNotFound, EmptyCartError, EmptyCodeError, MinimumNotMetError, ValidationError,
)
from ..utils.money import D, Money

log = logging.getLogger(__name__)

COUPON_KINDS = ("percentage", "fixed")


@dataclass(frozen=True)
class AppliedCoupon:
    code: str
    kind: str
    value: Money
    minimum_spend: Money = D(0)
    expires_on: date | None = None
    active: bool = True

    def is_current(self, today: date) -> bool:
        if not self.active:
            return False
        return self.expires_on is None or self.expires_on >= today

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "kind": self.kind,
            "value": str(self.value),
            "minimum_spend": str(self.minimum_spend),
            "expires_on": self.expires_on.isoformat() if self.expires_on else None,
            "active": self.active,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AppliedCoupon":
        expires = data.get("expires_on")
        return cls(
            code=data["code"],
            kind=data["kind"],
            value=D(data["value"]),
            minimum_spend=D(data.get("minimum_spend") or 0),
            expires_on=date.fromisoformat(expires) if expires else None,
            active=bool(data.get("active", True)),
        )

    def as_api(self):
        return {
            "code": self.code,
            "kind": self.kind,
            "value": float(self.value),
            "minimum_spend": float(self.minimum_spend),
            "expires_on": self.expires_on.isoformat() if self.expires_on else None,
        }


def normalize_code(code) -> str:
    if code is None:
        return ""
    if not isinstance(code, str):
        raise ValidationError("code must be a string", field="code")
    return code.strip().upper()


class CouponValidator:
    """
    Decides whether a coupon code applies to a cart.

    Lookup goes through the persistence collaborator's ``get_coupon(code, today)``,
    which only returns active, unexpired coupons. A failed validation raises
    and leaves the caller's cart untouched.
    """

    def __init__(self, persistence, today=date.today):
        self.persistence = persistence
        self.today = today

    def lookup(self, code) -> AppliedCoupon:
        """Active, unexpired coupon for `code`, without looking at any cart."""
        normalized = normalize_code(code)
        if not normalized:
            raise EmptyCodeError()
        return self._fetch(normalized)

    def _fetch(self, normalized: str) -> AppliedCoupon:
        today = self.today()
        coupon = self.persistence.get_coupon(normalized, today)
        # unknown, inactive and expired look the same to the caller
        if coupon is None or not coupon.is_current(today):
            log.info("coupon %s rejected: not found or expired", normalized)
            raise CouponNotFound()
        return coupon

    def validate(self, code, subtotal, item_count=None) -> AppliedCoupon:
        normalized = normalize_code(code)
        if not normalized:
            raise EmptyCodeError()
        if item_count is not None and item_count == 0:
            raise EmptyCartError()

        coupon = self._fetch(normalized)
        if coupon.minimum_spend > D(subtotal):
            log.info("coupon %s rejected: subtotal %s below minimum %s",
                     normalized, subtotal, coupon.minimum_spend)
            raise MinimumNotMetError(coupon.minimum_spend)

        return coupon
