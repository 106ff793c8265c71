"""
Loyalty accrual and redemption service
Flask application factory
"""
import os
import logging
from flask import Flask
from flask_cors import CORS

from .extensions import db, migrate, CLOCK_EXTENSION_KEY
from .config import get_config, validate_config
from .utils.logging_config import setup_logging
from .utils.errors import register_error_handlers
from .utils.time_utils import Clock, system_clock

logger = logging.getLogger(__name__)


def create_app(config_name: str = None, clock: Clock = None) -> Flask:
    """
    Application factory for creating Flask app instances.

    Args:
        config_name: Configuration environment (development, production, testing)
        clock: Time source for the domain; tests pass a FixedClock

    Returns:
        Configured Flask application
    """
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    config = get_config(config_name)

    # Setup logging before anything else
    setup_logging(config.LOG_LEVEL, config.LOG_FORMAT)

    # Fail fast on unsafe production settings
    validate_config(config_name)

    app = Flask(__name__)
    app.config.from_object(config)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    app.extensions[CLOCK_EXTENSION_KEY] = clock or system_clock

    CORS(app, origins=app.config['CORS_ORIGINS'], allow_headers=['Content-Type', 'Authorization'])

    # Register blueprints
    register_blueprints(app)

    # Register CLI commands
    from .commands import init_app as init_commands
    init_commands(app)

    # Register error handlers
    register_error_handlers(app)

    # Health check endpoint
    @app.route('/health')
    def health_check():
        return {'status': 'healthy', 'service': 'loyalty'}

    logger.info(f'Loyalty service started ({config_name})')
    return app


def register_blueprints(app: Flask) -> None:
    """Register all API blueprints."""
    from .api.programs import programs_bp
    from .api.cards import cards_bp

    app.register_blueprint(programs_bp, url_prefix='/api/programs')
    app.register_blueprint(cards_bp, url_prefix='/api/cards')
