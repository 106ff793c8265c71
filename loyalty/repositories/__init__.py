"""
Persistence adapters between the domain aggregates and the database rows.
"""
from .program_repository import LoyaltyProgramRepository
from .card_repository import LoyaltyCardRepository

__all__ = [
    'LoyaltyProgramRepository',
    'LoyaltyCardRepository',
]
