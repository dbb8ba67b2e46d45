"""Dutch auctions for the destination-chain direction.

The maker locks ``starting_amount`` plus the full safety deposit at creation.
Each fill hands the taker's share, priced at the current decayed amount, to a
new destination-chain escrow. Once the last part is filled the auction is
deleted and whatever the decay left behind goes back to the maker.
"""

import logging
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from fusionswap.config import Settings, get_settings
from fusionswap.core.hashlock import Hashlock
from fusionswap.core.pricing import decayed_amount
from fusionswap.core.segments import fill_amount, is_fully_filled
from fusionswap.errors import (
    AuctionEndedError,
    AuctionNotStartedError,
    InvalidAuctionParamsError,
    InvalidCallerError,
    InvalidHashesError,
    InvalidResolverWhitelistError,
    SegmentAlreadyFilledError,
)
from fusionswap.ledger.models import DutchAuction, Escrow, SwapEventType
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


class AuctionService:
    """Creates, prices, fills and cancels Dutch auctions."""

    def __init__(self, session: AsyncSession, settings: Optional[Settings] = None):
        self.session = session
        self.settings = settings or get_settings()
        self.repo = LedgerRepository(session)
        self.escrows = EscrowService(session, self.settings)

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
        """Create an auction and lock the maker's funds in it."""
        if starting_amount <= 0:
            raise InvalidAuctionParamsError("starting_amount must be positive")
        if safety_deposit <= 0:
            raise InvalidAuctionParamsError("safety_deposit must be positive")
        if start_time >= end_time:
            raise InvalidAuctionParamsError("start_time must be before end_time")
        if ending_amount < 0 or ending_amount > starting_amount:
            raise InvalidAuctionParamsError("ending_amount must be within [0, starting_amount]")
        if decay_duration < 0:
            raise InvalidAuctionParamsError("decay_duration must not be negative")

        try:
            hashlock = Hashlock.from_hashes(list(hashes))
        except ValueError as e:
            raise InvalidHashesError(str(e))

        if not resolver_whitelist:
            raise InvalidResolverWhitelistError()

        deposit_asset = self.settings.safety_deposit_asset
        funding = {asset: starting_amount}
        funding[deposit_asset] = funding.get(deposit_asset, 0) + safety_deposit
        await self.repo.require_funds(maker, funding)

        auction = DutchAuction(
            address=self.repo.generate_address("auction"),
            order_hash=order_hash,
            maker=maker,
            hashlock_commitment=hashlock.commitment,
            hashlock_leaf_count=hashlock.leaf_count,
            asset=asset,
            starting_amount=starting_amount,
            ending_amount=ending_amount,
            start_time=start_time,
            end_time=end_time,
            decay_duration=decay_duration,
            safety_deposit_asset=deposit_asset,
            safety_deposit=safety_deposit,
            resolver_whitelist=list(resolver_whitelist),
            fill_watermark=None,
        )
        await self.repo.add_object(auction)
        await self.repo.transfer(maker, auction.address, asset, starting_amount, "auction_funding")
        await self.repo.transfer(
            maker, auction.address, deposit_asset, safety_deposit, "auction_safety_deposit"
        )

        await self.repo.record_event(
            SwapEventType.AUCTION_CREATED,
            auction.address,
            order_hash,
            {
                "maker": maker,
                "asset": asset,
                "starting_amount": starting_amount,
                "ending_amount": ending_amount,
                "start_time": start_time,
                "end_time": end_time,
                "decay_duration": decay_duration,
                "safety_deposit": safety_deposit,
                "hash_count": hashlock.leaf_count,
            },
        )
        logger.info(
            f"Auction {auction.address} created by {maker}: {starting_amount}->{ending_amount} "
            f"{asset}, {hashlock.leaf_count} hash(es)"
        )
        return auction

    async def get_auction(self, address: str) -> DutchAuction:
        return await self.repo.get_auction(address)

    @staticmethod
    def current_amount(auction: DutchAuction, now: int) -> int:
        """Decayed price of the whole auction at ``now``."""
        return decayed_amount(
            auction.starting_amount,
            auction.ending_amount,
            auction.start_time,
            auction.decay_duration,
            now,
        )

    async def get_current_amount(self, address: str, now: Optional[int] = None) -> int:
        auction = await self.repo.get_auction(address)
        return self.current_amount(auction, resolve_now(now))

    async def fill(
        self,
        address: str,
        taker: str,
        upto_segment: Optional[int] = None,
        now: Optional[int] = None,
    ) -> Escrow:
        """Fill the auction through ``upto_segment`` and open the taker's escrow."""
        now = resolve_now(now)
        async with ObjectLock(address, operation="fill_auction", session=self.session):
            auction = await self.repo.get_auction(address)

            try:
                check_resolver(auction, taker)
                if now < auction.start_time:
                    raise AuctionNotStartedError(f"Auction starts at {auction.start_time}")
                if now >= auction.end_time:
                    raise AuctionEndedError(f"Auction ended at {auction.end_time}")
                segment = resolve_segment(auction, upto_segment)
                timelock = self.escrows.new_timelock(is_source_chain=False, now=now)
            except Exception as e:
                logger.warning(f"Rejected fill of {address} by {taker}: {e}")
                raise

            leaf_count = auction.hashlock_leaf_count
            watermark = auction.fill_watermark
            price = self.current_amount(auction, now)
            amount = fill_amount(price, watermark, segment, leaf_count)
            deposit = fill_amount(auction.safety_deposit, watermark, segment, leaf_count)

            if not await self.repo.advance_watermark(auction, segment):
                raise SegmentAlreadyFilledError(f"Segment {segment} was filled concurrently")

            escrow = await self.escrows.open_escrow(
                source=auction.address,
                order_hash=auction.order_hash,
                hashlock=auction.hashlock,
                segment_index=upto_segment,
                asset=auction.asset,
                amount=amount,
                safety_deposit_asset=auction.safety_deposit_asset,
                safety_deposit=deposit,
                maker=auction.maker,
                taker=taker,
                is_source_chain=False,
                timelock=timelock,
            )
            await self.repo.record_event(
                SwapEventType.AUCTION_FILLED,
                auction.address,
                auction.order_hash,
                {
                    "taker": taker,
                    "escrow": escrow.address,
                    "upto_segment": upto_segment,
                    "price": price,
                    "amount": amount,
                    "safety_deposit": deposit,
                },
            )
            logger.info(
                f"Auction {address} filled through segment {segment} by {taker}: "
                f"{amount} {auction.asset} at price {price}"
            )

            if is_fully_filled(segment, leaf_count):
                refunded = await self._close(auction)
                logger.info(f"Auction {address} fully filled, {refunded} returned to maker")

            return escrow

    async def cancel(self, caller: str, address: str) -> int:
        """Maker cancels: every unfilled unit and safety deposit goes back. Returns asset refunded."""
        async with ObjectLock(address, operation="cancel_auction", session=self.session):
            auction = await self.repo.get_auction(address)
            if caller != auction.maker:
                logger.warning(f"Rejected cancel of auction {address} by {caller}")
                raise InvalidCallerError("Only the maker may cancel an auction")

            refunded = await self._close(auction)
            await self.repo.record_event(
                SwapEventType.AUCTION_CANCELLED,
                address,
                auction.order_hash,
                {"maker": auction.maker, "refunded": refunded},
            )
            logger.info(f"Auction {address} cancelled by maker, {refunded} refunded")
            return refunded

    async def _close(self, auction: DutchAuction) -> int:
        """Return remaining funds to the maker and delete the auction."""
        asset_left = await remaining_asset(self.repo, auction)
        deposit_left = remaining_safety_deposit(auction)
        await self.repo.transfer(
            auction.address, auction.maker, auction.asset, asset_left, "auction_refund"
        )
        await self.repo.transfer(
            auction.address,
            auction.maker,
            auction.safety_deposit_asset,
            deposit_left,
            "auction_safety_deposit_refund",
        )
        await self.repo.delete_object(auction)
        return asset_left
