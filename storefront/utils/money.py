# storefront/utils/money.py

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

Money = Decimal

ZERO = Decimal("0.00")

def D(x) -> Money:
    return x if isinstance(x, Decimal) else Decimal(str(x or "0"))

def round_money(x: Money) -> Money:
    return D(x).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

def parse_money(x):
    """Decimal from user input, or None when it is not a number."""
    if x is None or isinstance(x, bool):
        return None
    try:
        value = D(x)
    except (InvalidOperation, ValueError):
        return None
    return value if value.is_finite() else None

def format_price(value, symbol="R$") -> str:
    return f"{symbol} {round_money(value):,.2f}"
