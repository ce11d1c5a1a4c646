"""Create commission engine schema

Revision ID: 20261019_000001
Revises: 
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


MONEY = sa.DECIMAL(precision=18, scale=8)
RATE = sa.DECIMAL(precision=10, scale=4)


def upgrade() -> None:
    # Sponsor hierarchy
    op.create_table(
        'affiliates',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('code', sa.String(32), nullable=True),
        sa.Column('sponsor_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('validated_referrals', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('category', sa.String(32), nullable=False, server_default='jogador'),
        sa.Column('category_level', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('negative_carryover', MONEY, nullable=False, server_default='0'),
        sa.Column('last_activity_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('available_balance', MONEY, nullable=False, server_default='0'),
        sa.Column('lifetime_commissions', MONEY, nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['sponsor_id'], ['affiliates.id'], ondelete='SET NULL'),
        sa.CheckConstraint('validated_referrals >= 0', name='check_affiliate_validated_referrals_non_negative'),
        sa.CheckConstraint('negative_carryover >= 0', name='check_affiliate_carryover_non_negative'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_affiliates_code', 'affiliates', ['code'], unique=True)
    op.create_index('ix_affiliates_sponsor_id', 'affiliates', ['sponsor_id'])
    op.create_index('ix_affiliates_status', 'affiliates', ['status'])

    # Referred customers (CPA guard)
    op.create_table(
        'referrals',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('affiliate_id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.String(64), nullable=False),
        sa.Column('is_validated', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('validated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cpa_processed', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('cpa_processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('first_deposit', MONEY, nullable=True),
        sa.Column('first_deposit_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('total_bets', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_ggr', MONEY, nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['affiliate_id'], ['affiliates.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('customer_id')
    )
    op.create_index('ix_referrals_affiliate_id', 'referrals', ['affiliate_id'])
    op.create_index('ix_referrals_cpa_processed', 'referrals', ['cpa_processed'])

    # Immutable customer transactions
    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('customer_id', sa.String(64), nullable=False),
        sa.Column('external_id', sa.String(128), nullable=True),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='completed'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('external_id')
    )
    op.create_index('ix_transactions_customer_id', 'transactions', ['customer_id'])
    op.create_index('idx_transaction_customer_created', 'transactions', ['customer_id', 'created_at'])
    op.create_index('idx_transaction_type_status_created', 'transactions', ['type', 'status', 'created_at'])

    # One row per (source affiliate, period): revenue share guard
    op.create_table(
        'revshare_runs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('affiliate_id', sa.Integer(), nullable=False),
        sa.Column('period', sa.String(32), nullable=False),
        sa.Column('period_start', sa.DateTime(timezone=True), nullable=False),
        sa.Column('period_end', sa.DateTime(timezone=True), nullable=False),
        sa.Column('deposits', MONEY, nullable=False, server_default='0'),
        sa.Column('withdrawals', MONEY, nullable=False, server_default='0'),
        sa.Column('bonuses', MONEY, nullable=False, server_default='0'),
        sa.Column('ngr', MONEY, nullable=False, server_default='0'),
        sa.Column('carryover_before', MONEY, nullable=False, server_default='0'),
        sa.Column('carryover_after', MONEY, nullable=False, server_default='0'),
        sa.Column('adjusted_ngr', MONEY, nullable=False, server_default='0'),
        sa.Column('total_distributed', MONEY, nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['affiliate_id'], ['affiliates.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('affiliate_id', 'period', name='uq_revshare_run_affiliate_period')
    )
    op.create_index('ix_revshare_runs_affiliate_id', 'revshare_runs', ['affiliate_id'])

    # Payout lines
    op.create_table(
        'commissions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('affiliate_id', sa.Integer(), nullable=False),
        sa.Column('source_affiliate_id', sa.Integer(), nullable=True),
        sa.Column('referral_id', sa.Integer(), nullable=True),
        sa.Column('transaction_id', sa.Integer(), nullable=True),
        sa.Column('revshare_run_id', sa.Integer(), nullable=True),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('base_amount', MONEY, nullable=False),
        sa.Column('percentage', RATE, nullable=True),
        sa.Column('gross_amount', MONEY, nullable=False),
        sa.Column('decay_percent', RATE, nullable=False, server_default='0'),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='calculated'),
        sa.Column('period', sa.String(32), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['affiliate_id'], ['affiliates.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['source_affiliate_id'], ['affiliates.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['referral_id'], ['referrals.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['transaction_id'], ['transactions.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['revshare_run_id'], ['revshare_runs.id'], ondelete='SET NULL'),
        sa.CheckConstraint('level >= 1', name='check_commission_level_positive'),
        sa.CheckConstraint('amount >= 0', name='check_commission_amount_non_negative'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('referral_id', 'level', name='uq_commission_referral_level')
    )
    op.create_index('ix_commissions_affiliate_id', 'commissions', ['affiliate_id'])
    op.create_index('ix_commissions_revshare_run_id', 'commissions', ['revshare_run_id'])
    op.create_index('ix_commissions_status', 'commissions', ['status'])
    op.create_index('idx_commission_affiliate_type_period', 'commissions', ['affiliate_id', 'type', 'period'])
    op.create_index('idx_commission_source_period', 'commissions', ['source_affiliate_id', 'period'])


def downgrade() -> None:
    op.drop_index('idx_commission_source_period', 'commissions')
    op.drop_index('idx_commission_affiliate_type_period', 'commissions')
    op.drop_index('ix_commissions_status', 'commissions')
    op.drop_index('ix_commissions_revshare_run_id', 'commissions')
    op.drop_index('ix_commissions_affiliate_id', 'commissions')
    op.drop_table('commissions')

    op.drop_index('ix_revshare_runs_affiliate_id', 'revshare_runs')
    op.drop_table('revshare_runs')

    op.drop_index('idx_transaction_type_status_created', 'transactions')
    op.drop_index('idx_transaction_customer_created', 'transactions')
    op.drop_index('ix_transactions_customer_id', 'transactions')
    op.drop_table('transactions')

    op.drop_index('ix_referrals_cpa_processed', 'referrals')
    op.drop_index('ix_referrals_affiliate_id', 'referrals')
    op.drop_table('referrals')

    op.drop_index('ix_affiliates_status', 'affiliates')
    op.drop_index('ix_affiliates_sponsor_id', 'affiliates')
    op.drop_index('ix_affiliates_code', 'affiliates')
    op.drop_table('affiliates')
