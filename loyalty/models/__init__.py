"""
Database models for the loyalty service.
"""
from .program import ProgramRecord, RewardRecord
from .card import CardRecord, TransactionRecord

__all__ = [
    'ProgramRecord',
    'RewardRecord',
    'CardRecord',
    'TransactionRecord',
]
