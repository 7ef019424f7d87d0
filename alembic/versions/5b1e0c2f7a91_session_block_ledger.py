"""session block ledger

Revision ID: 5b1e0c2f7a91
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5b1e0c2f7a91'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'studios',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_studios_id', 'studios', ['id'])

    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('studio_id', sa.Integer(), sa.ForeignKey('studios.id'), nullable=False),
        sa.Column('first_name', sa.String(), nullable=False),
        sa.Column('last_name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_customers_id', 'customers', ['id'])
    op.create_index('ix_customers_studio_id', 'customers', ['studio_id'])

    op.create_table(
        'session_blocks',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=False),
        sa.Column('studio_id', sa.Integer(), sa.ForeignKey('studios.id'), nullable=False),
        sa.Column('total_sessions', sa.Integer(), nullable=False),
        sa.Column('used_sessions', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('queue_position', sa.Integer(), nullable=False),
        sa.Column('purchase_date', sa.Date(), nullable=False),
        sa.Column('payment_method', sa.String(length=16), nullable=False, server_default='cash'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('activation_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('total_sessions > 0', name='ck_session_blocks_total_positive'),
        sa.CheckConstraint('used_sessions >= 0 AND used_sessions <= total_sessions', name='ck_session_blocks_used_range'),
        sa.CheckConstraint("status IN ('pending', 'active', 'completed')", name='ck_session_blocks_status'),
    )
    op.create_index('ix_session_blocks_id', 'session_blocks', ['id'])
    op.create_index('ix_session_blocks_queue', 'session_blocks', ['customer_id', 'studio_id', 'queue_position'])
    op.create_index(
        'uq_session_blocks_single_active',
        'session_blocks',
        ['customer_id', 'studio_id'],
        unique=True,
        postgresql_where=sa.text("status = 'active'"),
    )

    op.create_table(
        'session_transactions',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('session_block_id', sa.Integer(), sa.ForeignKey('session_blocks.id', ondelete='CASCADE'), nullable=False),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=False),
        sa.Column('studio_id', sa.Integer(), sa.ForeignKey('studios.id'), nullable=False),
        sa.Column('transaction_type', sa.String(length=16), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(), nullable=True),
        sa.Column('created_by_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_session_transactions_id', 'session_transactions', ['id'])
    op.create_index('ix_session_transactions_session_block_id', 'session_transactions', ['session_block_id'])
    op.create_index('ix_session_transactions_customer_id', 'session_transactions', ['customer_id'])
    op.create_index('ix_session_transactions_studio_created', 'session_transactions', ['studio_id', 'created_at'])


def downgrade() -> None:
    op.drop_index('ix_session_transactions_studio_created', table_name='session_transactions')
    op.drop_index('ix_session_transactions_customer_id', table_name='session_transactions')
    op.drop_index('ix_session_transactions_session_block_id', table_name='session_transactions')
    op.drop_index('ix_session_transactions_id', table_name='session_transactions')
    op.drop_table('session_transactions')
    op.drop_index('uq_session_blocks_single_active', table_name='session_blocks')
    op.drop_index('ix_session_blocks_queue', table_name='session_blocks')
    op.drop_index('ix_session_blocks_id', table_name='session_blocks')
    op.drop_table('session_blocks')
    op.drop_index('ix_customers_studio_id', table_name='customers')
    op.drop_index('ix_customers_id', table_name='customers')
    op.drop_table('customers')
    op.drop_index('ix_studios_id', table_name='studios')
    op.drop_table('studios')
