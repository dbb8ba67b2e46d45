"""Entry points for swap operations.

Thin dispatch over the services: source-side fills take FusionOrders,
destination-side fills take DutchAuctions. No validation lives here.
"""

from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from fusionswap.config import Settings, get_settings
from fusionswap.ledger.models import DutchAuction, Escrow, FusionOrder
from fusionswap.ledger.repository import LedgerRepository
from fusionswap.services.auction_service import AuctionService
from fusionswap.services.escrow_service import EscrowResolution, EscrowService
from fusionswap.services.fusion_order_service import FusionOrderService


class SwapRouter:
    """Public operation surface bound to one database session."""

    def __init__(self, session: AsyncSession, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.ledger = LedgerRepository(session)
        self.auctions = AuctionService(session, settings)
        self.orders = FusionOrderService(session, settings)
        self.escrows = EscrowService(session, settings)

    # Asset store
    async def deposit(self, account: str, asset: str, amount: int) -> int:
        balance = await self.ledger.deposit(account, asset, amount)
        return balance.amount

    async def balance(self, holder: str, asset: str) -> int:
        return await self.ledger.get_balance_amount(holder, asset)

    # Auctions
    async def create_auction(
        self,
        maker: str,
        order_hash: str,
        hashes: Sequence[bytes],
        asset: str,
        starting_amount: int,
        ending_amount: int,
        start_time: int,
        end_time: int,
        decay_duration: int,
        safety_deposit: int,
        resolver_whitelist: Sequence[str],
    ) -> DutchAuction:
        return await self.auctions.create_auction(
            maker,
            order_hash,
            hashes,
            asset,
            starting_amount,
            ending_amount,
            start_time,
            end_time,
            decay_duration,
            safety_deposit,
            resolver_whitelist,
        )

    async def cancel_auction(self, caller: str, auction: str) -> int:
        return await self.auctions.cancel(caller, auction)

    # Fusion orders
    async def create_fusion_order(
        self,
        maker: str,
        order_hash: str,
        hashes: Sequence[bytes],
        asset: str,
        amount: int,
        safety_deposit: int,
        resolver_whitelist: Sequence[str],
        stale_timestamp: Optional[int] = None,
    ) -> FusionOrder:
        return await self.orders.create_order(
            maker,
            order_hash,
            hashes,
            asset,
            amount,
            safety_deposit,
            resolver_whitelist,
            stale_timestamp,
        )

    async def cancel_fusion_order(
        self, caller: str, order: str, now: Optional[int] = None
    ) -> int:
        return await self.orders.cancel(caller, order, now)

    # Fills
    async def deploy_source_single_fill(
        self, taker: str, order: str, now: Optional[int] = None
    ) -> Escrow:
        return await self.orders.fill(order, taker, None, now)

    async def deploy_source_partial_fill(
        self, taker: str, order: str, upto_segment: int, now: Optional[int] = None
    ) -> Escrow:
        return await self.orders.fill(order, taker, upto_segment, now)

    async def deploy_destination_single_fill(
        self, taker: str, auction: str, now: Optional[int] = None
    ) -> Escrow:
        return await self.auctions.fill(auction, taker, None, now)

    async def deploy_destination_partial_fill(
        self, taker: str, auction: str, upto_segment: int, now: Optional[int] = None
    ) -> Escrow:
        return await self.auctions.fill(auction, taker, upto_segment, now)

    # Escrows
    async def escrow_withdraw(
        self,
        caller: str,
        escrow: str,
        secret: bytes,
        proof: Optional[Sequence[bytes]] = None,
        now: Optional[int] = None,
    ) -> EscrowResolution:
        return await self.escrows.withdraw(caller, escrow, secret, proof, now)

    async def escrow_recovery(
        self, caller: str, escrow: str, now: Optional[int] = None
    ) -> EscrowResolution:
        return await self.escrows.recovery(caller, escrow, now)
