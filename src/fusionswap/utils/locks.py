"""Concurrency control for swap objects.

Every mutation of an auction, order or escrow runs under that object's lock,
so two resolvers racing on the same object are serialized: the second one
observes the first one's post-state.

A lock taken on behalf of a session stays held until that session's
transaction commits or rolls back, not just until the service call returns.
A second unit of work therefore cannot read the object between the first
one's last write and its commit.
"""

import asyncio
import logging
from typing import Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

# Global lock registry: object address -> asyncio.Lock
_object_locks: dict[str, asyncio.Lock] = {}
_registry_lock = asyncio.Lock()

# Key in Session.info holding the locks a session owns: address -> asyncio.Lock
SESSION_LOCKS_KEY = "fusionswap.object_locks"


async def get_object_lock(address: str) -> asyncio.Lock:
    """Get or create the lock for a swap object address.

    Args:
        address: Address of the auction, order or escrow

    Returns:
        asyncio.Lock shared by every caller for that address
    """
    async with _registry_lock:
        if address not in _object_locks:
            _object_locks[address] = asyncio.Lock()
        return _object_locks[address]


def held_locks(session: AsyncSession) -> dict[str, asyncio.Lock]:
    """Locks currently owned by a session's open transaction."""
    return session.info.setdefault(SESSION_LOCKS_KEY, {})


def release_session_locks(session: Session) -> None:
    """Release every object lock a session owns.

    Args:
        session: The sync Session (``AsyncSession.sync_session`` for async callers)
    """
    owned = session.info.pop(SESSION_LOCKS_KEY, None)
    if not owned:
        return
    for address, lock in owned.items():
        if lock.locked():
            lock.release()
            logger.debug(f"Lock released for {address} at end of transaction")


@event.listens_for(Session, "after_commit")
def _release_after_commit(session: Session) -> None:
    release_session_locks(session)


@event.listens_for(Session, "after_soft_rollback")
def _release_after_rollback(session: Session, previous_transaction) -> None:
    release_session_locks(session)


class LockTimeoutError(Exception):
    """Raised when a lock cannot be acquired within the timeout period."""

    pass


class ObjectLock:
    """Context manager for exclusive access to a swap object.

    Without a session the lock is released when the block exits. With a
    session it is handed to that session and released when its transaction
    ends; entering again for the same address from the same session does not
    wait on itself.

    Example:
        async with ObjectLock(auction_address, operation="fill", session=session):
            auction = await repo.get_auction(auction_address)
            ...
    """

    def __init__(
        self,
        address: str,
        timeout: Optional[float] = 30.0,
        operation: str = "object_operation",
        session: Optional[AsyncSession] = None,
    ):
        """Initialize the lock.

        Args:
            address: Address of the object to lock
            timeout: Maximum time to wait for lock (None = wait forever)
            operation: Description of the operation for logging
            session: Unit of work that keeps the lock until it commits or rolls back
        """
        self.address = address
        self.timeout = timeout
        self.operation = operation
        self.session = session
        self._lock: Optional[asyncio.Lock] = None
        self._acquired = False

    async def __aenter__(self) -> "ObjectLock":
        """Acquire the lock, unless the session already owns it."""
        if self.session is not None and self.address in held_locks(self.session):
            logger.debug(f"Lock already held by session for {self.address}: {self.operation}")
            return self

        self._lock = await get_object_lock(self.address)

        try:
            if self.timeout:
                await asyncio.wait_for(self._lock.acquire(), timeout=self.timeout)
            else:
                await self._lock.acquire()
            self._acquired = True
            logger.debug(f"Lock acquired for {self.address}: {self.operation}")

        except asyncio.TimeoutError:
            logger.warning(
                f"Lock timeout for {self.address} after {self.timeout}s: {self.operation}"
            )
            raise LockTimeoutError(
                f"Could not acquire lock for {self.address} within {self.timeout}s"
            )

        if self.session is not None:
            held_locks(self.session)[self.address] = self._lock
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Release the lock, or leave it to the session's transaction end."""
        if not (self._acquired and self._lock):
            return False

        if self.session is not None and self.session.in_transaction():
            # released by the after_commit / after_soft_rollback listeners
            self._acquired = False
            return False

        if self.session is not None:
            held_locks(self.session).pop(self.address, None)
        self._lock.release()
        self._acquired = False
        logger.debug(f"Lock released for {self.address}: {self.operation}")
        return False


def clear_object_locks() -> None:
    """Clear all object locks (useful for testing)."""
    _object_locks.clear()
