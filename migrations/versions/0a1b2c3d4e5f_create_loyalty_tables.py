"""Create loyalty program, reward, card and card transaction tables

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0a1b2c3d4e5f'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """Create the loyalty schema."""
    op.create_table(
        'loyalty_programs',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('brand_id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('stamp_threshold', sa.Integer(), nullable=True),
        sa.Column('points_conversion_rate', sa.Numeric(12, 4), nullable=True),
        sa.Column('points_config', sa.JSON(), nullable=True),
        sa.Column('daily_stamp_limit', sa.Integer(), nullable=True),
        sa.Column('minimum_transaction_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('expiration_policy', sa.JSON(), nullable=True),
        sa.Column('terms_and_conditions', sa.Text(), nullable=True),
        sa.Column('start_date', sa.DateTime(), nullable=True),
        sa.Column('end_date', sa.DateTime(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_loyalty_programs_brand', 'loyalty_programs', ['brand_id'])
    op.create_index('ix_loyalty_programs_brand_active', 'loyalty_programs', ['brand_id', 'is_active'])

    op.create_table(
        'rewards',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('program_id', sa.String(36), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('required_value', sa.Integer(), nullable=False),
        sa.Column('valid_from', sa.DateTime(), nullable=True),
        sa.Column('valid_to', sa.DateTime(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['program_id'], ['loyalty_programs.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_rewards_program_active', 'rewards', ['program_id', 'is_active'])

    op.create_table(
        'loyalty_cards',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('program_id', sa.String(36), nullable=False),
        sa.Column('customer_id', sa.String(36), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('stamps_collected', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('points_balance', sa.Numeric(14, 4), nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('qr_code', sa.String(100), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['program_id'], ['loyalty_programs.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('qr_code'),
        sa.UniqueConstraint('program_id', 'customer_id', name='uq_card_program_customer')
    )
    op.create_index('ix_loyalty_cards_customer', 'loyalty_cards', ['customer_id'])
    op.create_index('ix_loyalty_cards_program_status', 'loyalty_cards', ['program_id', 'status'])

    op.create_table(
        'card_transactions',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('card_id', sa.String(36), nullable=False),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(30), nullable=False),
        sa.Column('reward_id', sa.String(36), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=True),
        sa.Column('points_amount', sa.Numeric(14, 4), nullable=True),
        sa.Column('transaction_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('store_id', sa.String(36), nullable=False),
        sa.Column('staff_id', sa.String(36), nullable=True),
        sa.Column('pos_transaction_id', sa.String(100), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(['card_id'], ['loyalty_cards.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('card_id', 'sequence', name='uq_card_transactions_card_sequence')
    )
    op.create_index('ix_card_transactions_card_timestamp', 'card_transactions', ['card_id', 'timestamp'])
    op.create_index('ix_card_transactions_type', 'card_transactions', ['type'])


def downgrade():
    """Drop the loyalty schema."""
    op.drop_index('ix_card_transactions_type', table_name='card_transactions')
    op.drop_index('ix_card_transactions_card_timestamp', table_name='card_transactions')
    op.drop_table('card_transactions')
    op.drop_index('ix_loyalty_cards_program_status', table_name='loyalty_cards')
    op.drop_index('ix_loyalty_cards_customer', table_name='loyalty_cards')
    op.drop_table('loyalty_cards')
    op.drop_index('ix_rewards_program_active', table_name='rewards')
    op.drop_table('rewards')
    op.drop_index('ix_loyalty_programs_brand_active', table_name='loyalty_programs')
    op.drop_index('ix_loyalty_programs_brand', table_name='loyalty_programs')
    op.drop_table('loyalty_programs')
