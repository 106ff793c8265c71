"""
Persistence rows for loyalty programs and their rewards.

These are storage shapes only. Business rules live on the domain objects in
``loyalty.domain``; the repositories translate between the two.
"""
from datetime import datetime
from ..extensions import db


class ProgramRecord(db.Model):
    """
    Stored state of a LoyaltyProgram aggregate.

    Value objects (points config, expiration policy) are stored as JSON so
    they round-trip through their own ``to_dict``/``from_dict``.
    """
    __tablename__ = 'loyalty_programs'

    id = db.Column(db.String(36), primary_key=True)
    brand_id = db.Column(db.String(36), nullable=False)

    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    type = db.Column(db.String(20), nullable=False)  # LoyaltyProgramType

    # Type-specific accrual parameter (exactly one is set)
    stamp_threshold = db.Column(db.Integer)
    points_conversion_rate = db.Column(db.Numeric(12, 4))
    points_config = db.Column(db.JSON)

    # Optional constraints
    daily_stamp_limit = db.Column(db.Integer)
    minimum_transaction_amount = db.Column(db.Numeric(12, 2))

    expiration_policy = db.Column(db.JSON)
    terms_and_conditions = db.Column(db.Text)
    start_date = db.Column(db.DateTime)
    end_date = db.Column(db.DateTime)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Rewards are created through the program but never deleted with it
    rewards = db.relationship(
        'RewardRecord',
        backref='program',
        lazy='selectin',
        cascade='save-update, merge',
        order_by='RewardRecord.created_at',
    )

    __table_args__ = (
        db.Index('ix_loyalty_programs_brand', 'brand_id'),
        db.Index('ix_loyalty_programs_brand_active', 'brand_id', 'is_active'),
    )

    def __repr__(self):
        return f'<ProgramRecord {self.name} ({self.type})>'


class RewardRecord(db.Model):
    """Stored state of a Reward."""
    __tablename__ = 'rewards'

    id = db.Column(db.String(36), primary_key=True)
    program_id = db.Column(db.String(36), db.ForeignKey('loyalty_programs.id'), nullable=False)

    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    required_value = db.Column(db.Integer, nullable=False)  # Stamps or points

    # Availability window (null = unbounded)
    valid_from = db.Column(db.DateTime)
    valid_to = db.Column(db.DateTime)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.Index('ix_rewards_program_active', 'program_id', 'is_active'),
    )

    def __repr__(self):
        return f'<RewardRecord {self.title}: {self.required_value}>'
