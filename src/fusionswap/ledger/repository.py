"""Repository for ledger operations.

Doubles as the asset store: balances are keyed by ``(holder, asset)`` where a
holder is an account address or the address of an auction, order or escrow.
Everything runs inside the caller's session, so balance moves commit or roll
back together with the record changes around them.
"""

import hashlib
import logging
import secrets
from typing import Any, Optional, TypeVar, Union

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fusionswap.errors import InsufficientBalanceError, ObjectDoesNotExistError
from fusionswap.ledger.models import (
    Balance,
    DutchAuction,
    Escrow,
    FusionOrder,
    SwapEvent,
    SwapEventType,
    Transfer,
)

logger = logging.getLogger(__name__)

SwapObject = TypeVar("SwapObject", DutchAuction, FusionOrder, Escrow)
FillableObject = Union[DutchAuction, FusionOrder]


class LedgerRepository:
    """Repository for all ledger-related database operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # Balance operations
    async def get_balance(self, holder: str, asset: str) -> Optional[Balance]:
        """Get the balance record for a holder/asset pair."""
        stmt = select(Balance).where(Balance.holder == holder, Balance.asset == asset)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_balance_amount(self, holder: str, asset: str) -> int:
        """Get the amount held in one asset.

        Args:
            holder: Account or object address
            asset: Asset identifier

        Returns:
            Amount held, 0 if the holder never touched the asset
        """
        balance = await self.get_balance(holder, asset)
        return balance.amount if balance else 0

    async def get_or_create_balance(self, holder: str, asset: str) -> Balance:
        """Get or create a balance record for holder/asset."""
        balance = await self.get_balance(holder, asset)
        if balance is None:
            balance = Balance(holder=holder, asset=asset, amount=0)
            self.session.add(balance)
            await self.session.flush()
        return balance

    async def credit_balance(self, holder: str, asset: str, amount: int) -> Balance:
        """Add amount to a balance."""
        if amount < 0:
            raise ValueError(f"Cannot credit a negative amount: {amount}")
        balance = await self.get_or_create_balance(holder, asset)
        balance.amount += amount
        await self.session.flush()
        return balance

    async def debit_balance(self, holder: str, asset: str, amount: int) -> Balance:
        """Subtract amount from a balance.

        Args:
            holder: Account or object address to debit
            asset: Asset identifier
            amount: Non-negative amount to remove

        Returns:
            The updated Balance

        Raises:
            InsufficientBalanceError: If the holder has less than ``amount``
        """
        if amount < 0:
            raise ValueError(f"Cannot debit a negative amount: {amount}")
        balance = await self.get_or_create_balance(holder, asset)
        if balance.amount < amount:
            raise InsufficientBalanceError(
                f"Insufficient balance: {holder} has {balance.amount} {asset}, need {amount}"
            )
        balance.amount -= amount
        await self.session.flush()
        return balance

    async def require_funds(self, holder: str, amounts: dict[str, int]) -> None:
        """Check every asset is covered before moving any of them."""
        for asset, amount in amounts.items():
            available = await self.get_balance_amount(holder, asset)
            if available < amount:
                raise InsufficientBalanceError(
                    f"Insufficient balance: {holder} has {available} {asset}, need {amount}"
                )

    async def deposit(self, account: str, asset: str, amount: int) -> Balance:
        """Credit an account from outside the ledger."""
        if amount <= 0:
            raise ValueError("Deposit amount must be positive")
        balance = await self.credit_balance(account, asset, amount)
        self.session.add(
            Transfer(from_holder=None, to_holder=account, asset=asset, amount=amount, reason="deposit")
        )
        await self.session.flush()
        logger.info(f"Deposited {amount} {asset} to {account}")
        return balance

    async def transfer(
        self,
        from_holder: str,
        to_holder: str,
        asset: str,
        amount: int,
        reason: str,
    ) -> None:
        """Move funds between holders and journal the move.

        Zero amounts are skipped and leave no journal entry.

        Args:
            from_holder: Address debited
            to_holder: Address credited
            asset: Asset identifier
            amount: Amount to move
            reason: Short label stored on the Transfer row
        """
        if amount == 0:
            return
        await self.debit_balance(from_holder, asset, amount)
        await self.credit_balance(to_holder, asset, amount)
        self.session.add(
            Transfer(
                from_holder=from_holder,
                to_holder=to_holder,
                asset=asset,
                amount=amount,
                reason=reason,
            )
        )
        await self.session.flush()
        logger.debug(f"Transfer {amount} {asset}: {from_holder} -> {to_holder} ({reason})")

    async def get_transfers(self, holder: str) -> list[Transfer]:
        """Journal entries touching a holder, oldest first."""
        stmt = (
            select(Transfer)
            .where(or_(Transfer.from_holder == holder, Transfer.to_holder == holder))
            .order_by(Transfer.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # Swap object operations
    @staticmethod
    def generate_address(kind: str) -> str:
        """Fresh object address, unique per created object."""
        seed = f"{kind}:{secrets.token_hex(16)}"
        return "0x" + hashlib.sha256(seed.encode()).hexdigest()

    async def add_object(self, obj: SwapObject) -> SwapObject:
        """Persist a new auction, order or escrow."""
        self.session.add(obj)
        await self.session.flush()
        return obj

    async def get_object(self, model: type[SwapObject], address: str) -> SwapObject:
        """Load a swap object by address.

        Args:
            model: DutchAuction, FusionOrder or Escrow
            address: Object address

        Returns:
            The live object

        Raises:
            ObjectDoesNotExistError: If no such object exists or it was deleted
        """
        stmt = select(model).where(model.address == address)
        result = await self.session.execute(stmt)
        obj = result.scalar_one_or_none()
        if obj is None:
            raise ObjectDoesNotExistError(f"{model.__name__} {address} does not exist")
        return obj

    async def get_auction(self, address: str) -> DutchAuction:
        return await self.get_object(DutchAuction, address)

    async def get_fusion_order(self, address: str) -> FusionOrder:
        return await self.get_object(FusionOrder, address)

    async def get_escrow(self, address: str) -> Escrow:
        return await self.get_object(Escrow, address)

    async def delete_object(self, obj: SwapObject) -> None:
        await self.session.delete(obj)
        await self.session.flush()

    async def advance_watermark(self, obj: FillableObject, upto_segment: int) -> bool:
        """Compare-and-set the fill watermark.

        Args:
            obj: Auction or order being filled
            upto_segment: New watermark

        Returns:
            True if the stored watermark was still below ``upto_segment`` and
            was moved, False if a fill that got there first already moved it
        """
        model = type(obj)
        stmt = (
            update(model)
            .where(
                model.id == obj.id,
                or_(model.fill_watermark.is_(None), model.fill_watermark < upto_segment),
            )
            .values(fill_watermark=upto_segment)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    # Event log
    async def record_event(
        self,
        event_type: SwapEventType,
        object_address: str,
        order_hash: str,
        payload: Optional[dict[str, Any]] = None,
    ) -> SwapEvent:
        """Append an entry to the event log.

        Args:
            event_type: What happened
            object_address: Auction, order or escrow the event is about
            order_hash: Order the object belongs to
            payload: JSON-serializable details
        """
        event = SwapEvent(
            event_type=event_type.value,
            object_address=object_address,
            order_hash=order_hash,
            payload=payload or {},
        )
        self.session.add(event)
        await self.session.flush()
        return event

    async def get_events(
        self,
        object_address: Optional[str] = None,
        order_hash: Optional[str] = None,
    ) -> list[SwapEvent]:
        """Events filtered by object and/or order hash, oldest first."""
        stmt = select(SwapEvent)
        if object_address is not None:
            stmt = stmt.where(SwapEvent.object_address == object_address)
        if order_hash is not None:
            stmt = stmt.where(SwapEvent.order_hash == order_hash)
        result = await self.session.execute(stmt.order_by(SwapEvent.id))
        return list(result.scalars().all())
