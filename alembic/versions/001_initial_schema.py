"""Initial swap ledger schema.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _hashlock_columns() -> list:
    return [
        sa.Column('hashlock_commitment', sa.LargeBinary(32), nullable=False),
        sa.Column('hashlock_leaf_count', sa.Integer(), nullable=False),
    ]


def _created_at() -> sa.Column:
    return sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True)


def upgrade() -> None:
    # Balances table
    op.create_table(
        'balances',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('holder', sa.String(66), nullable=False),
        sa.Column('asset', sa.String(66), nullable=False),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_balances_holder_asset', 'balances', ['holder', 'asset'], unique=True)

    # Transfer journal
    op.create_table(
        'transfers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('from_holder', sa.String(66), nullable=True),
        sa.Column('to_holder', sa.String(66), nullable=False),
        sa.Column('asset', sa.String(66), nullable=False),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('reason', sa.String(50), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_transfers_from_holder', 'transfers', ['from_holder'])
    op.create_index('ix_transfers_to_holder', 'transfers', ['to_holder'])

    # Dutch auctions
    op.create_table(
        'dutch_auctions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('address', sa.String(66), nullable=False),
        sa.Column('order_hash', sa.String(130), nullable=False),
        sa.Column('maker', sa.String(66), nullable=False),
        sa.Column('asset', sa.String(66), nullable=False),
        sa.Column('starting_amount', sa.BigInteger(), nullable=False),
        sa.Column('ending_amount', sa.BigInteger(), nullable=False),
        sa.Column('start_time', sa.BigInteger(), nullable=False),
        sa.Column('end_time', sa.BigInteger(), nullable=False),
        sa.Column('decay_duration', sa.BigInteger(), nullable=False),
        sa.Column('safety_deposit_asset', sa.String(66), nullable=False),
        sa.Column('safety_deposit', sa.BigInteger(), nullable=False),
        sa.Column('resolver_whitelist', sa.JSON(), nullable=False),
        sa.Column('fill_watermark', sa.Integer(), nullable=True),
        *_hashlock_columns(),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_dutch_auctions_address', 'dutch_auctions', ['address'], unique=True)
    op.create_index('ix_dutch_auctions_maker', 'dutch_auctions', ['maker'])

    # Fusion orders
    op.create_table(
        'fusion_orders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('address', sa.String(66), nullable=False),
        sa.Column('order_hash', sa.String(130), nullable=False),
        sa.Column('maker', sa.String(66), nullable=False),
        sa.Column('asset', sa.String(66), nullable=False),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('safety_deposit_asset', sa.String(66), nullable=False),
        sa.Column('safety_deposit', sa.BigInteger(), nullable=False),
        sa.Column('resolver_whitelist', sa.JSON(), nullable=False),
        sa.Column('fill_watermark', sa.Integer(), nullable=True),
        sa.Column('stale_timestamp', sa.BigInteger(), nullable=True),
        *_hashlock_columns(),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_fusion_orders_address', 'fusion_orders', ['address'], unique=True)
    op.create_index('ix_fusion_orders_maker', 'fusion_orders', ['maker'])

    # Escrows
    op.create_table(
        'escrows',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('address', sa.String(66), nullable=False),
        sa.Column('order_hash', sa.String(130), nullable=False),
        sa.Column('maker', sa.String(66), nullable=False),
        sa.Column('taker', sa.String(66), nullable=False),
        sa.Column('is_source_chain', sa.Boolean(), nullable=False),
        sa.Column('asset', sa.String(66), nullable=False),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('safety_deposit_asset', sa.String(66), nullable=False),
        sa.Column('safety_deposit', sa.BigInteger(), nullable=False),
        sa.Column('segment_index', sa.Integer(), nullable=True),
        sa.Column('timelock_created_at', sa.BigInteger(), nullable=False),
        sa.Column('finality_duration', sa.BigInteger(), nullable=False),
        sa.Column('exclusive_withdrawal_duration', sa.BigInteger(), nullable=False),
        sa.Column('public_withdrawal_duration', sa.BigInteger(), nullable=False),
        sa.Column('private_cancellation_duration', sa.BigInteger(), nullable=False),
        *_hashlock_columns(),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_escrows_address', 'escrows', ['address'], unique=True)
    op.create_index('ix_escrows_order_hash', 'escrows', ['order_hash'])

    # Swap event log
    op.create_table(
        'swap_events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('event_type', sa.String(30), nullable=False),
        sa.Column('object_address', sa.String(66), nullable=False),
        sa.Column('order_hash', sa.String(130), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_swap_events_event_type', 'swap_events', ['event_type'])
    op.create_index('ix_swap_events_object_address', 'swap_events', ['object_address'])


def downgrade() -> None:
    op.drop_table('swap_events')
    op.drop_table('escrows')
    op.drop_table('fusion_orders')
    op.drop_table('dutch_auctions')
    op.drop_table('transfers')
    op.drop_table('balances')
