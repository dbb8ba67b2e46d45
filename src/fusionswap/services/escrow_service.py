"""Escrow lifecycle: creation from a fill, withdraw and recovery.

Resolution is gated by the timelock phase:

    FINALITY              -> nothing allowed
    EXCLUSIVE_WITHDRAWAL  -> taker withdraws with the secret
    PUBLIC_WITHDRAWAL     -> anyone withdraws with the secret
    PRIVATE_CANCELLATION  -> taker recovers
    PUBLIC_CANCELLATION   -> anyone recovers

Withdraw pays the asset to the counterparty of the escrow's side (maker on a
destination-chain escrow, taker on a source-chain escrow). Recovery returns
it to the original depositor (taker on destination, maker on source). The
safety deposit always goes to whoever performed the action, except private
cancellation where it is the taker by construction.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from fusionswap.config import Settings, get_settings
from fusionswap.core.hashlock import Hashlock
from fusionswap.core.timelock import Phase, Timelock
from fusionswap.errors import (
    InvalidCallerError,
    InvalidPhaseError,
    InvalidSecretError,
    InvalidTimelockError,
)
from fusionswap.ledger.models import Escrow, SwapEventType
from fusionswap.ledger.repository import LedgerRepository
from fusionswap.utils.clock import resolve_now
from fusionswap.utils.locks import ObjectLock

logger = logging.getLogger(__name__)


@dataclass
class EscrowResolution:
    """Outcome of a successful withdraw or recovery."""

    escrow_address: str
    order_hash: str
    phase: Phase
    asset: str
    amount: int
    asset_recipient: str
    safety_deposit_asset: str
    safety_deposit: int
    safety_deposit_recipient: str


class EscrowService:
    """Creates and resolves escrows."""

    def __init__(self, session: AsyncSession, settings: Optional[Settings] = None):
        self.session = session
        self.repo = LedgerRepository(session)
        self.settings = settings or get_settings()

    def new_timelock(self, is_source_chain: bool, now: int) -> Timelock:
        """Timelock for an escrow opened at ``now`` on the given side.

        Raises InvalidTimelockError if a configured duration is out of bounds.
        Fill paths call this before they move the watermark.
        """
        durations = (
            self.settings.source_durations
            if is_source_chain
            else self.settings.destination_durations
        )
        for duration in durations:
            if duration < 0 or duration > self.settings.max_timelock_duration:
                raise InvalidTimelockError(
                    f"Duration {duration}s outside [0, {self.settings.max_timelock_duration}]"
                )
        return Timelock.new(now, *durations)

    async def open_escrow(
        self,
        source: str,
        order_hash: str,
        hashlock: Hashlock,
        segment_index: Optional[int],
        asset: str,
        amount: int,
        safety_deposit_asset: str,
        safety_deposit: int,
        maker: str,
        taker: str,
        is_source_chain: bool,
        timelock: Timelock,
    ) -> Escrow:
        """Create an escrow funded from ``source`` under ``timelock``.

        Called by the fill paths while they hold the source object's lock.
        """
        escrow = Escrow(
            address=self.repo.generate_address("escrow"),
            order_hash=order_hash,
            maker=maker,
            taker=taker,
            is_source_chain=is_source_chain,
            asset=asset,
            amount=amount,
            safety_deposit_asset=safety_deposit_asset,
            safety_deposit=safety_deposit,
            segment_index=segment_index,
            hashlock_commitment=hashlock.commitment,
            hashlock_leaf_count=hashlock.leaf_count,
            timelock_created_at=timelock.created_at,
            finality_duration=timelock.finality_duration,
            exclusive_withdrawal_duration=timelock.exclusive_withdrawal_duration,
            public_withdrawal_duration=timelock.public_withdrawal_duration,
            private_cancellation_duration=timelock.private_cancellation_duration,
        )
        await self.repo.add_object(escrow)

        await self.repo.transfer(source, escrow.address, asset, amount, "escrow_funding")
        await self.repo.transfer(
            source, escrow.address, safety_deposit_asset, safety_deposit, "escrow_safety_deposit"
        )

        await self.repo.record_event(
            SwapEventType.ESCROW_CREATED,
            escrow.address,
            order_hash,
            {
                "source": source,
                "maker": maker,
                "taker": taker,
                "amount": amount,
                "safety_deposit": safety_deposit,
                "segment_index": segment_index,
                "is_source_chain": is_source_chain,
                "created_at": timelock.created_at,
            },
        )
        logger.info(
            f"Escrow {escrow.address} opened from {source}: {amount} {asset}, "
            f"taker={taker}, source_chain={is_source_chain}"
        )
        return escrow

    async def get_escrow(self, address: str) -> Escrow:
        return await self.repo.get_escrow(address)

    async def get_phase(self, address: str, now: Optional[int] = None) -> Phase:
        escrow = await self.repo.get_escrow(address)
        return escrow.timelock.current_phase(resolve_now(now))

    async def withdraw(
        self,
        caller: str,
        address: str,
        secret: bytes,
        proof: Optional[Sequence[bytes]] = None,
        now: Optional[int] = None,
    ) -> EscrowResolution:
        """Release the escrowed asset by revealing the secret."""
        now = resolve_now(now)
        async with ObjectLock(address, operation="escrow_withdraw", session=self.session):
            escrow = await self.repo.get_escrow(address)
            phase = escrow.timelock.current_phase(now)

            if phase == Phase.EXCLUSIVE_WITHDRAWAL:
                if caller != escrow.taker:
                    logger.warning(f"Rejected withdraw of {address} by {caller}: not taker")
                    raise InvalidCallerError("Only the taker may withdraw in the exclusive phase")
            elif phase != Phase.PUBLIC_WITHDRAWAL:
                logger.warning(f"Rejected withdraw of {address} in phase {phase.value}")
                raise InvalidPhaseError(f"Cannot withdraw during {phase.value}")

            if not escrow.hashlock.verify(secret, escrow.segment_index, proof):
                logger.warning(f"Rejected withdraw of {address}: secret does not verify")
                raise InvalidSecretError()

            recipient = escrow.taker if escrow.is_source_chain else escrow.maker
            return await self._resolve(
                escrow, phase, recipient, caller, SwapEventType.ESCROW_WITHDRAWN, secret
            )

    async def recovery(
        self,
        caller: str,
        address: str,
        now: Optional[int] = None,
    ) -> EscrowResolution:
        """Return the escrowed asset to its depositor after the withdrawal window."""
        now = resolve_now(now)
        async with ObjectLock(address, operation="escrow_recovery", session=self.session):
            escrow = await self.repo.get_escrow(address)
            phase = escrow.timelock.current_phase(now)

            if phase == Phase.PRIVATE_CANCELLATION:
                if caller != escrow.taker:
                    logger.warning(f"Rejected recovery of {address} by {caller}: not taker")
                    raise InvalidCallerError("Only the taker may recover in the private phase")
            elif phase != Phase.PUBLIC_CANCELLATION:
                logger.warning(f"Rejected recovery of {address} in phase {phase.value}")
                raise InvalidPhaseError(f"Cannot recover during {phase.value}")

            depositor = escrow.maker if escrow.is_source_chain else escrow.taker
            return await self._resolve(
                escrow, phase, depositor, caller, SwapEventType.ESCROW_RECOVERED
            )

    async def _resolve(
        self,
        escrow: Escrow,
        phase: Phase,
        asset_recipient: str,
        deposit_recipient: str,
        event_type: SwapEventType,
        secret: Optional[bytes] = None,
    ) -> EscrowResolution:
        await self.repo.transfer(
            escrow.address, asset_recipient, escrow.asset, escrow.amount, event_type.value
        )
        await self.repo.transfer(
            escrow.address,
            deposit_recipient,
            escrow.safety_deposit_asset,
            escrow.safety_deposit,
            "safety_deposit",
        )

        payload = {
            "phase": phase.value,
            "asset_recipient": asset_recipient,
            "safety_deposit_recipient": deposit_recipient,
            "amount": escrow.amount,
            "safety_deposit": escrow.safety_deposit,
        }
        if secret is not None:
            payload["secret"] = secret.hex()
        await self.repo.record_event(event_type, escrow.address, escrow.order_hash, payload)

        resolution = EscrowResolution(
            escrow_address=escrow.address,
            order_hash=escrow.order_hash,
            phase=phase,
            asset=escrow.asset,
            amount=escrow.amount,
            asset_recipient=asset_recipient,
            safety_deposit_asset=escrow.safety_deposit_asset,
            safety_deposit=escrow.safety_deposit,
            safety_deposit_recipient=deposit_recipient,
        )
        await self.repo.delete_object(escrow)
        logger.info(
            f"Escrow {resolution.escrow_address} {event_type.value} in {phase.value}: "
            f"{resolution.amount} {resolution.asset} -> {asset_recipient}"
        )
        return resolution
