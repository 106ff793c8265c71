"""
Card ledger entry.

Transactions are the durable audit trail of a card: once created they are
never updated or deleted. Voids and redemptions are new entries.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from .enums import TransactionType
from .ids import LoyaltyCardId, RewardId, StaffId, StoreId, TransactionId
from .points_config import MONEY_PLACES, POINTS_PLACES, to_decimal
from ..utils.exceptions import ValidationError
from ..utils.time_utils import to_utc_z, utcnow

STAMP_TYPES = (TransactionType.STAMP_ISSUANCE, TransactionType.STAMP_VOID)
POINTS_TYPES = (TransactionType.POINTS_ISSUANCE, TransactionType.POINTS_VOID)


@dataclass(frozen=True, eq=False)
class Transaction:
    """
    One accrual, void or redemption event on a card.

    The constructor enforces the per-type shape:
    - stamp issuance/void: positive ``quantity``
    - points issuance/void: positive ``points_amount``
    - reward redemption: a ``reward_id``
    """
    card_id: LoyaltyCardId
    type: TransactionType
    store_id: Optional[StoreId] = None
    reward_id: Optional[RewardId] = None
    quantity: Optional[int] = None
    points_amount: Optional[Decimal] = None
    transaction_amount: Optional[Decimal] = None
    staff_id: Optional[StaffId] = None
    pos_transaction_id: Optional[str] = None
    timestamp: datetime = field(default_factory=utcnow)
    metadata: Mapping[str, str] = field(default_factory=dict)
    id: TransactionId = field(default_factory=TransactionId.new)

    def __post_init__(self):
        try:
            tx_type = TransactionType(self.type)
        except ValueError:
            raise ValidationError('Invalid transaction type', field='type') from None
        object.__setattr__(self, 'type', tx_type)

        if not isinstance(self.card_id, LoyaltyCardId):
            raise ValidationError('Transaction requires a card ID', field='card_id')
        if not isinstance(self.store_id, StoreId):
            raise ValidationError('Transaction requires a store ID', field='store_id')
        if self.staff_id is not None and not isinstance(self.staff_id, StaffId):
            raise ValidationError('Staff ID has the wrong type', field='staff_id')

        if tx_type in STAMP_TYPES:
            if (self.quantity is None or isinstance(self.quantity, bool)
                    or not isinstance(self.quantity, int) or self.quantity <= 0):
                raise ValidationError('Stamp transactions require a positive quantity', field='quantity')
        elif tx_type in POINTS_TYPES:
            if self.points_amount is None or to_decimal(self.points_amount, 'points_amount', POINTS_PLACES) <= 0:
                raise ValidationError('Points transactions require a positive points amount',
                                      field='points_amount')
        elif not isinstance(self.reward_id, RewardId):
            raise ValidationError('Reward redemption requires a valid reward ID', field='reward_id')

        if self.points_amount is not None:
            object.__setattr__(self, 'points_amount', to_decimal(self.points_amount, 'points_amount', POINTS_PLACES))
        if self.transaction_amount is not None:
            object.__setattr__(self, 'transaction_amount',
                               to_decimal(self.transaction_amount, 'transaction_amount', MONEY_PLACES))

        for key in self.metadata:
            if not key or not str(key).strip():
                raise ValidationError('Metadata key cannot be empty', field='metadata')
        object.__setattr__(self, 'metadata', MappingProxyType(dict(self.metadata)))

    @classmethod
    def rehydrate(cls, **fields) -> 'Transaction':
        """
        Restore a stored ledger entry exactly as recorded.

        Bypasses the constructor checks: historical entries are kept even if
        the rules for new entries have since changed.
        """
        tx = object.__new__(cls)
        defaults = {
            'store_id': None, 'reward_id': None, 'quantity': None, 'points_amount': None,
            'transaction_amount': None, 'staff_id': None, 'pos_transaction_id': None,
        }
        defaults.update(fields)
        defaults['metadata'] = MappingProxyType(dict(defaults.get('metadata') or {}))
        for name, value in defaults.items():
            object.__setattr__(tx, name, value)
        return tx

    def __repr__(self):
        return f'<Transaction {self.id}: {self.type.value} on card {self.card_id}>'

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for API responses."""
        return {
            'id': str(self.id),
            'card_id': str(self.card_id),
            'type': self.type.value,
            'reward_id': str(self.reward_id) if self.reward_id else None,
            'quantity': self.quantity,
            'points_amount': str(self.points_amount) if self.points_amount is not None else None,
            'transaction_amount': str(self.transaction_amount) if self.transaction_amount is not None else None,
            'store_id': str(self.store_id) if self.store_id else None,
            'staff_id': str(self.staff_id) if self.staff_id else None,
            'pos_transaction_id': self.pos_transaction_id,
            'timestamp': to_utc_z(self.timestamp),
            'metadata': dict(self.metadata),
        }
