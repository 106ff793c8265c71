"""
CLI Commands for the loyalty service.

Usage:
    flask cards expire-due                      # Expire cards past their expiration date
    flask cards expire-due --program-id <uuid>  # Only one program
    flask cards expire-due --dry-run            # Preview without writing
"""
from .cards import init_app as init_card_commands


def init_app(app):
    """Register all CLI commands with the Flask app."""
    init_card_commands(app)
