"""
Persistence rows for loyalty cards and their transaction ledger.
"""
from datetime import datetime
from ..extensions import db


class CardRecord(db.Model):
    """
    Stored state of a LoyaltyCard aggregate.

    Design notes:
    - One card per customer per program (unique constraint)
    - ``version`` is an optimistic lock: SQLAlchemy adds it to the UPDATE
      WHERE clause, so two writers that loaded the same version cannot both
      commit
    """
    __tablename__ = 'loyalty_cards'

    id = db.Column(db.String(36), primary_key=True)
    program_id = db.Column(db.String(36), db.ForeignKey('loyalty_programs.id'), nullable=False)
    customer_id = db.Column(db.String(36), nullable=False)

    type = db.Column(db.String(20), nullable=False)  # Copied from the program
    stamps_collected = db.Column(db.Integer, default=0, nullable=False)
    points_balance = db.Column(db.Numeric(14, 4), default=0, nullable=False)
    status = db.Column(db.String(20), default='active', nullable=False)
    qr_code = db.Column(db.String(100), nullable=False, unique=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)
    expires_at = db.Column(db.DateTime)

    version = db.Column(db.Integer, nullable=False)

    transactions = db.relationship(
        'TransactionRecord',
        backref='card',
        lazy='selectin',
        order_by='TransactionRecord.sequence',
    )

    __mapper_args__ = {'version_id_col': version}

    __table_args__ = (
        db.UniqueConstraint('program_id', 'customer_id', name='uq_card_program_customer'),
        db.Index('ix_loyalty_cards_customer', 'customer_id'),
        db.Index('ix_loyalty_cards_program_status', 'program_id', 'status'),
    )

    def __repr__(self):
        return f'<CardRecord {self.id} ({self.type}, {self.status})>'


class TransactionRecord(db.Model):
    """
    Card ledger row - insert only.

    Rows are never updated or deleted; voids are separate rows. ``sequence``
    orders entries recorded within the same clock tick.
    """
    __tablename__ = 'card_transactions'

    id = db.Column(db.String(36), primary_key=True)
    card_id = db.Column(db.String(36), db.ForeignKey('loyalty_cards.id'), nullable=False)
    sequence = db.Column(db.Integer, nullable=False)  # Position in the card's ledger

    type = db.Column(db.String(30), nullable=False)  # TransactionType
    reward_id = db.Column(db.String(36))
    quantity = db.Column(db.Integer)
    points_amount = db.Column(db.Numeric(14, 4))
    transaction_amount = db.Column(db.Numeric(12, 2))

    store_id = db.Column(db.String(36), nullable=False)
    staff_id = db.Column(db.String(36))
    pos_transaction_id = db.Column(db.String(100))

    timestamp = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    # "metadata" is reserved on declarative models
    extra = db.Column('metadata', db.JSON, default=dict)

    __table_args__ = (
        db.UniqueConstraint('card_id', 'sequence', name='uq_card_transactions_card_sequence'),
        db.Index('ix_card_transactions_card_timestamp', 'card_id', 'timestamp'),
        db.Index('ix_card_transactions_type', 'type'),
    )

    def __repr__(self):
        return f'<TransactionRecord {self.id}: {self.type} for card {self.card_id}>'
