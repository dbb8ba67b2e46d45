"""Racing operations, each in its own unit of work on a file-backed database.

Commits are slowed down so the second operation is already waiting while the
first one's writes are still uncommitted.
"""

import asyncio

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from fusionswap.config import get_settings
from fusionswap.errors import ObjectDoesNotExistError, SegmentAlreadyFilledError
from fusionswap.ledger.database import close_db, get_db, init_db
from fusionswap.ledger.models import Escrow
from fusionswap.router import SwapRouter
from fusionswap.services.escrow_service import EscrowResolution
from helpers import (
    ASSET,
    MAKER,
    NATIVE,
    OTHER_RESOLVER,
    RESOLVER,
    STRANGER,
    T0,
    make_hashes,
    make_secrets,
)

MAKER_ASSET = 10_000
MAKER_NATIVE = 1_000


@pytest_asyncio.fixture
async def file_db(tmp_path, monkeypatch):
    """Point the process-wide engine at a sqlite file for the test."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    get_settings.cache_clear()
    await close_db()
    await init_db()

    yield

    await close_db()
    get_settings.cache_clear()


@pytest.fixture
def slow_commit(monkeypatch):
    original = AsyncSession.commit

    async def commit(self):
        await asyncio.sleep(0.05)
        await original(self)

    monkeypatch.setattr(AsyncSession, "commit", commit)


async def in_unit_of_work(operation):
    async with get_db() as session:
        return await operation(SwapRouter(session))


async def create_auction(hash_count: int) -> str:
    async def create(router: SwapRouter):
        await router.deposit(MAKER, ASSET, MAKER_ASSET)
        await router.deposit(MAKER, NATIVE, MAKER_NATIVE)
        auction = await router.create_auction(
            maker=MAKER,
            order_hash="0xrace",
            hashes=make_hashes(make_secrets(hash_count)),
            asset=ASSET,
            starting_amount=1_000,
            ending_amount=1_000,
            start_time=T0,
            end_time=T0 + 10_000,
            decay_duration=0,
            safety_deposit=100,
            resolver_whitelist=[RESOLVER, OTHER_RESOLVER],
        )
        return auction.address

    return await in_unit_of_work(create)


async def total_held(router: SwapRouter, holders, asset: str) -> int:
    total = 0
    for holder in holders:
        total += await router.balance(holder, asset)
    return total


@pytest.mark.asyncio
async def test_fill_against_fill(file_db, slow_commit):
    address = await create_auction(hash_count=11)

    results = await asyncio.gather(
        in_unit_of_work(
            lambda r: r.deploy_destination_partial_fill(RESOLVER, address, 2, T0 + 10)
        ),
        in_unit_of_work(
            lambda r: r.deploy_destination_partial_fill(OTHER_RESOLVER, address, 2, T0 + 10)
        ),
        return_exceptions=True,
    )

    escrows = [r for r in results if isinstance(r, Escrow)]
    errors = [r for r in results if isinstance(r, SegmentAlreadyFilledError)]
    assert len(escrows) == 1
    assert len(errors) == 1
    assert escrows[0].amount == 300

    async def check(router: SwapRouter):
        auction = await router.auctions.get_auction(address)
        assert auction.fill_watermark == 2
        assert await router.balance(address, ASSET) == 700
        assert await router.balance(address, NATIVE) == 70

    await in_unit_of_work(check)


@pytest.mark.asyncio
async def test_fill_against_cancel(file_db, slow_commit):
    address = await create_auction(hash_count=11)

    fill_result, cancel_result = await asyncio.gather(
        in_unit_of_work(
            lambda r: r.deploy_destination_partial_fill(RESOLVER, address, 2, T0 + 10)
        ),
        in_unit_of_work(lambda r: r.cancel_auction(MAKER, address)),
        return_exceptions=True,
    )

    if isinstance(fill_result, Escrow):
        assert cancel_result == 700
        escrowed = 300
    else:
        assert isinstance(fill_result, ObjectDoesNotExistError)
        assert cancel_result == 1_000
        escrowed = 0

    async def check(router: SwapRouter):
        with pytest.raises(ObjectDoesNotExistError):
            await router.auctions.get_auction(address)
        assert await router.balance(MAKER, ASSET) == MAKER_ASSET - escrowed
        holders = [MAKER, address]
        if escrowed:
            holders.append(fill_result.address)
        assert await total_held(router, holders, ASSET) == MAKER_ASSET
        assert await total_held(router, holders, NATIVE) == MAKER_NATIVE

    await in_unit_of_work(check)


@pytest.mark.asyncio
async def test_withdraw_against_withdraw(file_db, slow_commit):
    address = await create_auction(hash_count=1)
    escrow = await in_unit_of_work(
        lambda r: r.deploy_destination_single_fill(RESOLVER, address, T0)
    )
    secret = make_secrets(1)[0]
    public_withdrawal = T0 + 112

    results = await asyncio.gather(
        in_unit_of_work(
            lambda r: r.escrow_withdraw(STRANGER, escrow.address, secret, now=public_withdrawal)
        ),
        in_unit_of_work(
            lambda r: r.escrow_withdraw(RESOLVER, escrow.address, secret, now=public_withdrawal)
        ),
        return_exceptions=True,
    )

    resolutions = [r for r in results if isinstance(r, EscrowResolution)]
    errors = [r for r in results if isinstance(r, ObjectDoesNotExistError)]
    assert len(resolutions) == 1
    assert len(errors) == 1
    winner = resolutions[0].safety_deposit_recipient

    async def check(router: SwapRouter):
        assert await router.balance(MAKER, ASSET) == MAKER_ASSET
        assert await router.balance(escrow.address, ASSET) == 0
        assert await router.balance(escrow.address, NATIVE) == 0
        assert await router.balance(winner, NATIVE) == 100
        events = await router.ledger.get_events(object_address=escrow.address)
        assert [e.event_type for e in events] == ["escrow_created", "escrow_withdrawn"]

    await in_unit_of_work(check)
