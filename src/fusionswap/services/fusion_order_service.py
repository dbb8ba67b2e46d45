"""Pre-funded orders for the source-chain direction.

The maker deposits the asset and safety deposit before any counterparty is
known. A whitelisted resolver takes all or part of it, which moves the
proportional funds into a source-chain escrow in the same step; nobody ever
debits the maker's own balance after creation.
"""

import logging
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from fusionswap.config import Settings, get_settings
from fusionswap.core.hashlock import Hashlock
from fusionswap.core.segments import fill_amount, is_fully_filled
from fusionswap.errors import (
    InvalidCallerError,
    InvalidHashesError,
    InvalidOrderParamsError,
    InvalidResolverWhitelistError,
    SegmentAlreadyFilledError,
)
from fusionswap.ledger.models import Escrow, FusionOrder, SwapEventType
from fusionswap.ledger.repository import LedgerRepository
from fusionswap.services.escrow_service import EscrowService
from fusionswap.services.fills import (
    check_resolver,
    remaining_asset,
    remaining_safety_deposit,
    resolve_segment,
)
from fusionswap.utils.clock import resolve_now
from fusionswap.utils.locks import ObjectLock

logger = logging.getLogger(__name__)


class FusionOrderService:
    """Creates, fills and cancels fusion orders."""

    def __init__(self, session: AsyncSession, settings: Optional[Settings] = None):
        self.session = session
        self.settings = settings or get_settings()
        self.repo = LedgerRepository(session)
        self.escrows = EscrowService(session, self.settings)

    async def create_order(
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
        """Create an order holding the maker's asset and safety deposit."""
        if amount <= 0:
            raise InvalidOrderParamsError("amount must be positive")
        if safety_deposit <= 0:
            raise InvalidOrderParamsError("safety_deposit must be positive")
        if stale_timestamp is not None and stale_timestamp < 0:
            raise InvalidOrderParamsError("stale_timestamp must not be negative")

        try:
            hashlock = Hashlock.from_hashes(list(hashes))
        except ValueError as e:
            raise InvalidHashesError(str(e))

        if not resolver_whitelist:
            raise InvalidResolverWhitelistError()

        deposit_asset = self.settings.safety_deposit_asset
        funding = {asset: amount}
        funding[deposit_asset] = funding.get(deposit_asset, 0) + safety_deposit
        await self.repo.require_funds(maker, funding)

        order = FusionOrder(
            address=self.repo.generate_address("fusion_order"),
            order_hash=order_hash,
            maker=maker,
            hashlock_commitment=hashlock.commitment,
            hashlock_leaf_count=hashlock.leaf_count,
            asset=asset,
            amount=amount,
            safety_deposit_asset=deposit_asset,
            safety_deposit=safety_deposit,
            resolver_whitelist=list(resolver_whitelist),
            fill_watermark=None,
            stale_timestamp=stale_timestamp,
        )
        await self.repo.add_object(order)
        await self.repo.transfer(maker, order.address, asset, amount, "order_funding")
        await self.repo.transfer(
            maker, order.address, deposit_asset, safety_deposit, "order_safety_deposit"
        )

        await self.repo.record_event(
            SwapEventType.ORDER_CREATED,
            order.address,
            order_hash,
            {
                "maker": maker,
                "asset": asset,
                "amount": amount,
                "safety_deposit": safety_deposit,
                "stale_timestamp": stale_timestamp,
                "hash_count": hashlock.leaf_count,
            },
        )
        logger.info(
            f"Fusion order {order.address} created by {maker}: {amount} {asset}, "
            f"{hashlock.leaf_count} hash(es)"
        )
        return order

    async def get_order(self, address: str) -> FusionOrder:
        return await self.repo.get_fusion_order(address)

    async def fill(
        self,
        address: str,
        taker: str,
        upto_segment: Optional[int] = None,
        now: Optional[int] = None,
    ) -> Escrow:
        """Take the order through ``upto_segment`` into a source-chain escrow."""
        now = resolve_now(now)
        async with ObjectLock(address, operation="fill_order", session=self.session):
            order = await self.repo.get_fusion_order(address)

            try:
                check_resolver(order, taker)
                segment = resolve_segment(order, upto_segment)
                timelock = self.escrows.new_timelock(is_source_chain=True, now=now)
            except Exception as e:
                logger.warning(f"Rejected fill of order {address} by {taker}: {e}")
                raise

            leaf_count = order.hashlock_leaf_count
            watermark = order.fill_watermark
            amount = fill_amount(order.amount, watermark, segment, leaf_count)
            deposit = fill_amount(order.safety_deposit, watermark, segment, leaf_count)

            if not await self.repo.advance_watermark(order, segment):
                raise SegmentAlreadyFilledError(f"Segment {segment} was filled concurrently")

            escrow = await self.escrows.open_escrow(
                source=order.address,
                order_hash=order.order_hash,
                hashlock=order.hashlock,
                segment_index=upto_segment,
                asset=order.asset,
                amount=amount,
                safety_deposit_asset=order.safety_deposit_asset,
                safety_deposit=deposit,
                maker=order.maker,
                taker=taker,
                is_source_chain=True,
                timelock=timelock,
            )
            await self.repo.record_event(
                SwapEventType.ORDER_FILLED,
                order.address,
                order.order_hash,
                {
                    "taker": taker,
                    "escrow": escrow.address,
                    "upto_segment": upto_segment,
                    "amount": amount,
                    "safety_deposit": deposit,
                },
            )
            logger.info(
                f"Fusion order {address} taken through segment {segment} by {taker}: "
                f"{amount} {order.asset}"
            )

            if is_fully_filled(segment, leaf_count):
                await self.repo.delete_object(order)
                logger.info(f"Fusion order {address} fully taken")

            return escrow

    async def cancel(self, caller: str, address: str, now: Optional[int] = None) -> int:
        """Cancel the order. Returns the asset amount sent back to the maker.

        The maker can always cancel and gets everything back. Anyone else can
        cancel only once the order is stale, and keeps the safety deposit.
        """
        now = resolve_now(now)
        async with ObjectLock(address, operation="cancel_order", session=self.session):
            order = await self.repo.get_fusion_order(address)

            if caller != order.maker:
                if order.stale_timestamp is None or now < order.stale_timestamp:
                    logger.warning(f"Rejected cancel of order {address} by {caller}")
                    raise InvalidCallerError(
                        "Only the maker may cancel an order that is not stale"
                    )

            asset_left = await remaining_asset(self.repo, order)
            deposit_left = remaining_safety_deposit(order)
            await self.repo.transfer(
                order.address, order.maker, order.asset, asset_left, "order_refund"
            )
            await self.repo.transfer(
                order.address,
                caller,
                order.safety_deposit_asset,
                deposit_left,
                "order_safety_deposit_refund" if caller == order.maker else "stale_cancel_reward",
            )

            await self.repo.record_event(
                SwapEventType.ORDER_CANCELLED,
                address,
                order.order_hash,
                {
                    "caller": caller,
                    "maker": order.maker,
                    "refunded": asset_left,
                    "safety_deposit": deposit_left,
                    "stale": caller != order.maker,
                },
            )
            await self.repo.delete_object(order)
            logger.info(f"Fusion order {address} cancelled by {caller}, {asset_left} refunded")
            return asset_left
