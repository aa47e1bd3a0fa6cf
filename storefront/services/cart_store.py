# storefront/services/cart_store.py
from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, asdict

from ..errors import ValidationError
from ..utils.money import D, Money


class CartState(enum.Enum):
    EMPTY = "empty"
    NON_EMPTY_NO_COUPON = "non_empty_no_coupon"
    NON_EMPTY_WITH_COUPON = "non_empty_with_coupon"


@dataclass
class CartItem:
    line_id: str
    product_id: int
    product_name: str
    unit_price: Money
    size_id: int
    size_name: str | None
    quantity: int
    image_url: str | None = None

    @property
    def key(self) -> tuple[int, int]:
        return (self.product_id, self.size_id)

    def line_total(self) -> Money:
        return self.unit_price * self.quantity

    def to_dict(self) -> dict:
        data = asdict(self)
        data["unit_price"] = str(self.unit_price)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "CartItem":
        return cls(
            line_id=str(data["line_id"]),
            product_id=int(data["product_id"]),
            product_name=data.get("product_name") or "",
            unit_price=D(data.get("unit_price")),
            size_id=int(data["size_id"]),
            size_name=data.get("size_name"),
            quantity=int(data.get("quantity") or 1),
            image_url=data.get("image_url"),
        )

    def as_api(self):
        return {
            "line_id": self.line_id,
            "product_id": self.product_id,
            "name": self.product_name,
            "price": float(self.unit_price),
            "size_id": self.size_id,
            "size": self.size_name,
            "quantity": self.quantity,
            "line_total": float(self.line_total()),
            "image_url": self.image_url,
        }


def new_line_id() -> str:
    return uuid.uuid4().hex


def check_quantity(quantity) -> int:
    if isinstance(quantity, bool):
        raise ValidationError("quantity must be an integer", field="quantity")
    try:
        qty = int(quantity)
    except (TypeError, ValueError):
        raise ValidationError("quantity must be an integer", field="quantity")
    if qty != quantity and not isinstance(quantity, str):
        raise ValidationError("quantity must be an integer", field="quantity")
    if qty < 1:
        raise ValidationError("quantity must be >= 1", field="quantity")
    return qty


class CartStore:
    """
    In-memory line items of one shopping session plus its coupon slot.

    Items are unique per (product_id, size_id) and always carry a positive
    quantity. At most one coupon is applied; it is dropped whenever the last
    item leaves the cart.
    """

    def __init__(self, items=None, coupon=None):
        self._items: list[CartItem] = []
        for item in items or ():
            existing = self.find(item.product_id, item.size_id)
            if existing:
                existing.quantity += item.quantity
            elif item.quantity > 0:
                self._items.append(item)
        self._coupon = coupon if self._items else None

    def __len__(self):
        return len(self._items)

    @property
    def is_empty(self) -> bool:
        return not self._items

    @property
    def applied_coupon(self):
        return self._coupon

    @property
    def state(self) -> CartState:
        if not self._items:
            return CartState.EMPTY
        if self._coupon is None:
            return CartState.NON_EMPTY_NO_COUPON
        return CartState.NON_EMPTY_WITH_COUPON

    def find(self, product_id, size_id) -> CartItem | None:
        key = (int(product_id), int(size_id))
        return next((i for i in self._items if i.key == key), None)

    def get(self, line_id) -> CartItem | None:
        line_id = str(line_id)
        return next((i for i in self._items if i.line_id == line_id), None)

    def add_item(self, product_id, size_id, unit_price, name, quantity=1,
                 *, size_name=None, image_url=None, line_id=None) -> CartItem:
        qty = check_quantity(quantity)
        price = D(unit_price)
        if price < 0:
            raise ValidationError("unit price must be >= 0", field="unit_price")

        item = self.find(product_id, size_id)
        if item:
            item.quantity += qty
            return item

        item = CartItem(
            line_id=str(line_id) if line_id is not None else new_line_id(),
            product_id=int(product_id),
            product_name=name,
            unit_price=price,
            size_id=int(size_id),
            size_name=size_name,
            quantity=qty,
            image_url=image_url,
        )
        self._items.append(item)
        return item

    def update_quantity(self, line_id, delta) -> CartItem | None:
        """Returns the updated item, or None when it is gone (or never existed)."""
        item = self.get(line_id)
        if item is None:
            return None
        if item.quantity + int(delta) <= 0:
            self.remove_item(line_id)
            return None
        item.quantity += int(delta)
        return item

    def remove_item(self, line_id) -> CartItem | None:
        item = self.get(line_id)
        if item is None:
            return None
        self._items.remove(item)
        if not self._items:
            self._coupon = None
        return item

    def snapshot(self) -> tuple[CartItem, ...]:
        return tuple(CartItem(**asdict(i)) for i in self._items)

    def apply_coupon(self, coupon):
        # replaces whatever was applied; no stacking
        self._coupon = coupon

    def clear_coupon(self):
        self._coupon = None
