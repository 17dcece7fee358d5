# backend/storefront/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def create_app(config_object=Config) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # The engine (and its connection pool) is built here from config and lives with the app
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.profile import profile_bp
    from .routes.products import products_bp
    from .routes.categories import categories_bp
    from .routes.uploads import uploads_bp
    from .routes.cart import cart_bp
    from .routes.orders import orders_bp
    from .routes.notifications import notifications_bp
    from .routes.employees import employees_bp
    from .routes.admin import admin_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(profile_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(uploads_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(notifications_bp)
    app.register_blueprint(employees_bp)
    app.register_blueprint(admin_bp)

    allowed_origins = set(app.config.get("CORS_ORIGINS", []))

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    @app.errorhandler(404)
    def not_found(_e):
        return {"error": "Not found"}, 404

    @app.errorhandler(405)
    def method_not_allowed(_e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(413)
    def too_large(_e):
        return {"error": "Upload too large"}, 413

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
