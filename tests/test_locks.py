"""Tests for per-object locks."""

import asyncio

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fusionswap.utils.locks import LockTimeoutError, ObjectLock, get_object_lock


@pytest.mark.asyncio
async def test_same_address_same_lock():
    assert await get_object_lock("0xa") is await get_object_lock("0xa")
    assert await get_object_lock("0xa") is not await get_object_lock("0xb")


@pytest.mark.asyncio
async def test_lock_serializes_critical_sections():
    order = []

    async def worker(name: str):
        async with ObjectLock("0xshared", operation=name):
            order.append(f"{name}-in")
            await asyncio.sleep(0.01)
            order.append(f"{name}-out")

    await asyncio.gather(worker("a"), worker("b"))

    assert order in (
        ["a-in", "a-out", "b-in", "b-out"],
        ["b-in", "b-out", "a-in", "a-out"],
    )


@pytest.mark.asyncio
async def test_lock_timeout():
    async with ObjectLock("0xbusy"):
        with pytest.raises(LockTimeoutError):
            async with ObjectLock("0xbusy", timeout=0.01):
                pass


@pytest.mark.asyncio
async def test_lock_released_on_error():
    with pytest.raises(RuntimeError):
        async with ObjectLock("0xerr"):
            raise RuntimeError("boom")

    lock = await get_object_lock("0xerr")
    assert not lock.locked()


class TestSessionBoundLock:
    """A lock taken for a session lives until the session's transaction ends."""

    @pytest.mark.asyncio
    async def test_held_until_commit(self, db_session: AsyncSession):
        async with ObjectLock("0xobj", session=db_session):
            await db_session.execute(text("SELECT 1"))

        lock = await get_object_lock("0xobj")
        assert lock.locked()

        await db_session.commit()
        assert not lock.locked()

    @pytest.mark.asyncio
    async def test_released_on_rollback(self, db_session: AsyncSession):
        with pytest.raises(RuntimeError):
            async with ObjectLock("0xobj", session=db_session):
                await db_session.execute(text("SELECT 1"))
                raise RuntimeError("boom")

        lock = await get_object_lock("0xobj")
        assert lock.locked()

        await db_session.rollback()
        assert not lock.locked()

    @pytest.mark.asyncio
    async def test_same_session_reenters(self, db_session: AsyncSession):
        async with ObjectLock("0xobj", session=db_session):
            await db_session.execute(text("SELECT 1"))

        async with ObjectLock("0xobj", timeout=0.01, session=db_session):
            pass

        await db_session.commit()
        assert not (await get_object_lock("0xobj")).locked()

    @pytest.mark.asyncio
    async def test_other_session_waits_for_commit(self, db_engine):
        factory = async_sessionmaker(bind=db_engine, class_=AsyncSession)

        async with factory() as first, factory() as second:
            async with ObjectLock("0xobj", session=first):
                await first.execute(text("SELECT 1"))

            with pytest.raises(LockTimeoutError):
                async with ObjectLock("0xobj", timeout=0.01, session=second):
                    pass

            await first.commit()

            async with ObjectLock("0xobj", timeout=0.01, session=second):
                await second.execute(text("SELECT 1"))
            await second.commit()

    @pytest.mark.asyncio
    async def test_released_on_exit_without_transaction(self, db_session: AsyncSession):
        async with ObjectLock("0xidle", session=db_session):
            pass

        assert not (await get_object_lock("0xidle")).locked()
