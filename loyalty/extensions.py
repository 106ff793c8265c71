"""
Flask extensions initialization.
"""
from flask import current_app
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

from .utils.time_utils import Clock, system_clock

db = SQLAlchemy()
migrate = Migrate()

CLOCK_EXTENSION_KEY = 'loyalty_clock'


def get_clock() -> Clock:
    """Clock registered on the current app (the system clock by default)."""
    return current_app.extensions.get(CLOCK_EXTENSION_KEY, system_clock)
