from flask import Blueprint

bp = Blueprint("product", __name__, url_prefix="/api/products")
upload_bp = Blueprint("upload", __name__, url_prefix="/api/upload")

from . import routes  # noqa: E402,F401
