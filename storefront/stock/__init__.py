from flask import Blueprint

bp = Blueprint("stock", __name__, url_prefix="/api/stock")

from . import routes  # noqa: E402,F401
