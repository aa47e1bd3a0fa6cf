# ------ storefront/model/__init__.py ------

from .user import User
from .category import Category
from .size import Size
from .product import Product, Stock
from .coupon import Coupon
from .cart import CartLine
from .order import Order

__all__ = [
    "User",
    "Category",
    "Size",
    "Product",
    "Stock",
    "Coupon",
    "CartLine",
    "Order",
]
