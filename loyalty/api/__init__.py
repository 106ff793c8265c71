"""
HTTP API blueprints.
"""
from .programs import programs_bp
from .cards import cards_bp

__all__ = [
    'programs_bp',
    'cards_bp',
]
