"""SQLAlchemy models for the ledger.

Amounts are integers in the asset's smallest unit. Every holder of funds,
whether an account or a swap object, is identified by an address string.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    DateTime,
    Index,
    LargeBinary,
    String,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from fusionswap.core.hashlock import Hashlock
from fusionswap.core.timelock import Timelock


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class SwapEventType(str, Enum):
    """Kinds of entries written to the swap event log."""

    AUCTION_CREATED = "auction_created"
    AUCTION_FILLED = "auction_filled"
    AUCTION_CANCELLED = "auction_cancelled"
    ORDER_CREATED = "order_created"
    ORDER_FILLED = "order_filled"
    ORDER_CANCELLED = "order_cancelled"
    ESCROW_CREATED = "escrow_created"
    ESCROW_WITHDRAWN = "escrow_withdrawn"
    ESCROW_RECOVERED = "escrow_recovered"


class Balance(Base):
    """Asset balance held by an account or a swap object."""

    __tablename__ = "balances"
    __table_args__ = (Index("ix_balances_holder_asset", "holder", "asset", unique=True),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    holder: Mapped[str] = mapped_column(String(66), nullable=False)
    asset: Mapped[str] = mapped_column(String(66), nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class Transfer(Base):
    """Journal of every asset movement. ``from_holder`` is None for deposits."""

    __tablename__ = "transfers"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    from_holder: Mapped[Optional[str]] = mapped_column(String(66), nullable=True, index=True)
    to_holder: Mapped[str] = mapped_column(String(66), nullable=False, index=True)
    asset: Mapped[str] = mapped_column(String(66), nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    reason: Mapped[str] = mapped_column(String(50), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class HashlockMixin:
    """Columns storing a Hashlock commitment."""

    hashlock_commitment: Mapped[bytes] = mapped_column(LargeBinary(32), nullable=False)
    hashlock_leaf_count: Mapped[int] = mapped_column(nullable=False, default=1)

    @property
    def hashlock(self) -> Hashlock:
        return Hashlock(
            commitment=self.hashlock_commitment,
            leaf_count=self.hashlock_leaf_count,
        )

    @property
    def allows_partial_fills(self) -> bool:
        return self.hashlock_leaf_count > 1


class DutchAuction(HashlockMixin, Base):
    """Maker's sell order priced by linear decay, filled by whitelisted resolvers."""

    __tablename__ = "dutch_auctions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    address: Mapped[str] = mapped_column(String(66), unique=True, nullable=False, index=True)
    order_hash: Mapped[str] = mapped_column(String(130), nullable=False)
    maker: Mapped[str] = mapped_column(String(66), nullable=False, index=True)
    asset: Mapped[str] = mapped_column(String(66), nullable=False)
    starting_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    ending_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    start_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    end_time: Mapped[int] = mapped_column(BigInteger, nullable=False)
    decay_duration: Mapped[int] = mapped_column(BigInteger, nullable=False)
    safety_deposit_asset: Mapped[str] = mapped_column(String(66), nullable=False)
    safety_deposit: Mapped[int] = mapped_column(BigInteger, nullable=False)
    resolver_whitelist: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    fill_watermark: Mapped[Optional[int]] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class FusionOrder(HashlockMixin, Base):
    """Pre-funded order waiting for a resolver to take it."""

    __tablename__ = "fusion_orders"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    address: Mapped[str] = mapped_column(String(66), unique=True, nullable=False, index=True)
    order_hash: Mapped[str] = mapped_column(String(130), nullable=False)
    maker: Mapped[str] = mapped_column(String(66), nullable=False, index=True)
    asset: Mapped[str] = mapped_column(String(66), nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    safety_deposit_asset: Mapped[str] = mapped_column(String(66), nullable=False)
    safety_deposit: Mapped[int] = mapped_column(BigInteger, nullable=False)
    resolver_whitelist: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    fill_watermark: Mapped[Optional[int]] = mapped_column(nullable=True)
    stale_timestamp: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class Escrow(HashlockMixin, Base):
    """Funds committed to one swap leg, released by secret or recovered on timeout."""

    __tablename__ = "escrows"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    address: Mapped[str] = mapped_column(String(66), unique=True, nullable=False, index=True)
    order_hash: Mapped[str] = mapped_column(String(130), nullable=False, index=True)
    maker: Mapped[str] = mapped_column(String(66), nullable=False)
    taker: Mapped[str] = mapped_column(String(66), nullable=False)
    is_source_chain: Mapped[bool] = mapped_column(nullable=False)
    asset: Mapped[str] = mapped_column(String(66), nullable=False)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    safety_deposit_asset: Mapped[str] = mapped_column(String(66), nullable=False)
    safety_deposit: Mapped[int] = mapped_column(BigInteger, nullable=False)
    segment_index: Mapped[Optional[int]] = mapped_column(nullable=True)

    # Timelock
    timelock_created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    finality_duration: Mapped[int] = mapped_column(BigInteger, nullable=False)
    exclusive_withdrawal_duration: Mapped[int] = mapped_column(BigInteger, nullable=False)
    public_withdrawal_duration: Mapped[int] = mapped_column(BigInteger, nullable=False)
    private_cancellation_duration: Mapped[int] = mapped_column(BigInteger, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    @property
    def timelock(self) -> Timelock:
        return Timelock(
            created_at=self.timelock_created_at,
            finality_duration=self.finality_duration,
            exclusive_withdrawal_duration=self.exclusive_withdrawal_duration,
            public_withdrawal_duration=self.public_withdrawal_duration,
            private_cancellation_duration=self.private_cancellation_duration,
        )


class SwapEvent(Base):
    """Append-only log of successful state transitions."""

    __tablename__ = "swap_events"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    event_type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    object_address: Mapped[str] = mapped_column(String(66), nullable=False, index=True)
    order_hash: Mapped[str] = mapped_column(String(130), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
