from flask import Blueprint

bp = Blueprint("size", __name__, url_prefix="/api/sizes")

from . import routes  # noqa: E402,F401
