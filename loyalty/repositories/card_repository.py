"""
Card repository - maps LoyaltyCard aggregates to CardRecord rows.

The ledger is append-only in storage as well: ``update`` inserts the
transactions the card gained since it was loaded and never touches rows that
already exist.
"""
from datetime import datetime
from typing import List, Optional

from ..extensions import db
from ..domain import (
    CardStatus,
    CustomerId,
    LoyaltyCard,
    LoyaltyCardId,
    LoyaltyProgramId,
    RewardId,
    StaffId,
    StoreId,
    Transaction,
    TransactionId,
    TransactionType,
)
from ..models import CardRecord, TransactionRecord
from ..utils.exceptions import CardNotFoundError, ConcurrencyError
from ..utils.time_utils import Clock, system_clock
from .program_repository import stored_decimal


class LoyaltyCardRepository:
    """Load and store cards together with their transaction ledger."""

    def __init__(self, clock: Clock = system_clock):
        self.clock = clock

    # ==================== Queries ====================

    def get_by_id(self, card_id: LoyaltyCardId) -> Optional[LoyaltyCard]:
        record = db.session.get(CardRecord, str(card_id))
        return self._to_domain(record) if record else None

    def get_by_qr_code(self, qr_code: str) -> Optional[LoyaltyCard]:
        record = CardRecord.query.filter_by(qr_code=qr_code).first()
        return self._to_domain(record) if record else None

    def get_by_customer(self, customer_id: CustomerId) -> List[LoyaltyCard]:
        records = CardRecord.query.filter_by(customer_id=str(customer_id)).order_by(CardRecord.created_at).all()
        return [self._to_domain(r) for r in records]

    def get_by_program(self, program_id: LoyaltyProgramId) -> List[LoyaltyCard]:
        records = CardRecord.query.filter_by(program_id=str(program_id)).order_by(CardRecord.created_at).all()
        return [self._to_domain(r) for r in records]

    def find_by_customer_and_program(
        self,
        customer_id: CustomerId,
        program_id: LoyaltyProgramId,
    ) -> Optional[LoyaltyCard]:
        record = CardRecord.query.filter_by(
            customer_id=str(customer_id),
            program_id=str(program_id),
        ).first()
        return self._to_domain(record) if record else None

    def get_due_for_expiration(self, now: datetime, program_id: Optional[LoyaltyProgramId] = None) -> List[LoyaltyCard]:
        """Cards not yet EXPIRED whose expiration date is at or before ``now``."""
        query = CardRecord.query.filter(
            CardRecord.status != CardStatus.EXPIRED.value,
            CardRecord.expires_at.isnot(None),
            CardRecord.expires_at <= now,
        )
        if program_id is not None:
            query = query.filter(CardRecord.program_id == str(program_id))
        return [self._to_domain(r) for r in query.order_by(CardRecord.expires_at).all()]

    # ==================== Writes ====================

    def add(self, card: LoyaltyCard) -> None:
        record = CardRecord(
            id=str(card.id),
            program_id=str(card.program_id),
            customer_id=str(card.customer_id),
            type=card.type.value,
        )
        self._apply(record, card)
        db.session.add(record)

    def update(self, card: LoyaltyCard) -> None:
        """
        Stage the card's new state and its new ledger rows.

        Raises:
            CardNotFoundError: The card was never stored
            ConcurrencyError: The stored version moved since ``card`` was loaded
        """
        record = db.session.get(CardRecord, str(card.id))
        if record is None:
            raise CardNotFoundError(card.id)
        if card.version is not None and record.version != card.version:
            raise ConcurrencyError('Card', card.id)
        self._apply(record, card)

    def refresh_version(self, card: LoyaltyCard) -> None:
        """Pick up the version the database assigned on the last commit."""
        record = db.session.get(CardRecord, str(card.id))
        if record is not None:
            card.version = record.version

    # ==================== Mapping ====================

    def _apply(self, record: CardRecord, card: LoyaltyCard) -> None:
        record.stamps_collected = card.stamps_collected
        record.points_balance = card.points_balance
        record.status = card.status.value
        record.qr_code = card.qr_code
        record.created_at = card.created_at
        record.updated_at = card.updated_at
        record.expires_at = card.expires_at

        stored = {t.id for t in record.transactions}
        for sequence, transaction in enumerate(card.transactions):
            if str(transaction.id) not in stored:
                record.transactions.append(self._transaction_record(transaction, sequence))

    @staticmethod
    def _transaction_record(transaction: Transaction, sequence: int) -> TransactionRecord:
        return TransactionRecord(
            id=str(transaction.id),
            card_id=str(transaction.card_id),
            sequence=sequence,
            type=transaction.type.value,
            reward_id=str(transaction.reward_id) if transaction.reward_id else None,
            quantity=transaction.quantity,
            points_amount=transaction.points_amount,
            transaction_amount=transaction.transaction_amount,
            store_id=str(transaction.store_id),
            staff_id=str(transaction.staff_id) if transaction.staff_id else None,
            pos_transaction_id=transaction.pos_transaction_id,
            timestamp=transaction.timestamp,
            extra=dict(transaction.metadata),
        )

    @staticmethod
    def _transaction_to_domain(record: TransactionRecord) -> Transaction:
        return Transaction.rehydrate(
            id=TransactionId(record.id),
            card_id=LoyaltyCardId(record.card_id),
            type=TransactionType(record.type),
            reward_id=RewardId(record.reward_id) if record.reward_id else None,
            quantity=record.quantity,
            points_amount=stored_decimal(record.points_amount),
            transaction_amount=record.transaction_amount,
            store_id=StoreId(record.store_id),
            staff_id=StaffId(record.staff_id) if record.staff_id else None,
            pos_transaction_id=record.pos_transaction_id,
            timestamp=record.timestamp,
            metadata=record.extra or {},
        )

    def _to_domain(self, record: CardRecord) -> LoyaltyCard:
        return LoyaltyCard.rehydrate(
            id=LoyaltyCardId(record.id),
            program_id=LoyaltyProgramId(record.program_id),
            customer_id=CustomerId(record.customer_id),
            type=record.type,
            stamps_collected=record.stamps_collected,
            points_balance=stored_decimal(record.points_balance),
            status=record.status,
            qr_code=record.qr_code,
            created_at=record.created_at,
            updated_at=record.updated_at,
            expires_at=record.expires_at,
            transactions=[self._transaction_to_domain(t) for t in record.transactions],
            version=record.version,
            clock=self.clock,
        )
