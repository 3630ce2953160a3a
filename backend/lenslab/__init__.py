# backend/lenslab/__init__.py
from flask import Flask

from .config import Config
from .extensions import db, migrate



def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        # Overrides must land before the engine is bound
        app.config.update(config_overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.catalog import catalog_bp
    from .routes.pricing import pricing_bp
    from .routes.orders import orders_bp
    from .routes.order_items import order_items_bp
    from .routes.operator_stock import operator_stock_bp
    from .routes.bincard import bincard_bp
    from .routes.lab_tools import lab_tools_bp
    from .routes.fixed_costs import fixed_costs_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(pricing_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(order_items_bp)
    app.register_blueprint(operator_stock_bp)
    app.register_blueprint(bincard_bp)
    app.register_blueprint(lab_tools_bp)
    app.register_blueprint(fixed_costs_bp)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
