"""
Business logic services for the loyalty service.
"""
from .program_service import LoyaltyProgramService
from .card_service import LoyaltyCardService

__all__ = [
    'LoyaltyProgramService',
    'LoyaltyCardService',
]
