# storefront/cart/context.py
from flask import g

from ..services.cart_backend import SessionCartStorage
from ..services.persistence import SqlPersistence
from ..services.session import ShoppingSession
from ..utils.decorators import optional_user


def get_shopping_session() -> ShoppingSession:
    """Request-scoped shopping session; authenticated requests get the server cart."""
    if "shopping_session" not in g:
        user = optional_user()
        account_id = user.id if user else None
        g.shopping_session = ShoppingSession.start(
            account_id,
            persistence=SqlPersistence(),
            storage=SessionCartStorage(account_id),
        )
    return g.shopping_session


def end_shopping_session() -> None:
    get_shopping_session().close()
    g.pop("shopping_session", None)
