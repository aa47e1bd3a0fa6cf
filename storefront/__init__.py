import logging
import os
from flask import Flask
from .config import Config
from .extensions import db, jwt, cors, migrate

def create_app(config_overrides=None):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)
    Config.init_app(app)

    app.logger.setLevel(getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))
    logging.getLogger("storefront").setLevel(app.logger.level)

    # Init extensions
    db.init_app(app)
    jwt.init_app(app)
    cors.init_app(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}})
    migrate.init_app(app, db)

    from .errors import register_error_handlers; register_error_handlers(app)
    from .cli import register_cli; register_cli(app)

    # Register blueprints
    from .auth import bp as auth_bp; app.register_blueprint(auth_bp)
    from .product import bp as product_bp; app.register_blueprint(product_bp)
    from .product import upload_bp; app.register_blueprint(upload_bp)
    from .stock import bp as stock_bp; app.register_blueprint(stock_bp)
    from .category import bp as category_bp; app.register_blueprint(category_bp)
    from .size import bp as size_bp; app.register_blueprint(size_bp)
    from .cart import bp as cart_bp; app.register_blueprint(cart_bp)
    from .coupon import bp as coupon_bp; app.register_blueprint(coupon_bp)
    from .order import bp as order_bp; app.register_blueprint(order_bp)

    @app.get("/")
    def health():
        return {"ok": True, "msg": "API running"}

    app.config.setdefault("UPLOAD_FOLDER", os.path.join(app.root_path, app.config["UPLOAD_SUBDIR"]))
    os.makedirs(app.config["UPLOAD_FOLDER"], exist_ok=True)

    with app.app_context():
        db.create_all()
        app.logger.debug("blueprints: %s", sorted(app.blueprints.keys()))

    return app
