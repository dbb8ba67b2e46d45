"""Pytest configuration and fixtures."""

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["DEBUG"] = "false"

from fusionswap.config import get_settings
from fusionswap.ledger.models import Base
from fusionswap.ledger.repository import LedgerRepository
from fusionswap.router import SwapRouter
from fusionswap.utils.locks import clear_object_locks
from helpers import ASSET, MAKER, NATIVE


@pytest.fixture(autouse=True)
def reset_object_locks():
    """Drop per-object locks left over from a previous test."""
    clear_object_locks()
    yield
    clear_object_locks()


@pytest.fixture
def settings():
    return get_settings()


@pytest_asyncio.fixture
async def db_engine():
    """Create in-memory database engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for testing."""
    session_factory = async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def ledger_repo(db_session: AsyncSession) -> LedgerRepository:
    """Create ledger repository for testing."""
    return LedgerRepository(db_session)


@pytest_asyncio.fixture
async def swap_router(db_session: AsyncSession) -> SwapRouter:
    return SwapRouter(db_session)


@pytest_asyncio.fixture
async def funded_maker(ledger_repo: LedgerRepository) -> str:
    """Maker holding plenty of the traded asset and the safety deposit asset."""
    await ledger_repo.deposit(MAKER, ASSET, 10_000_000_000)
    await ledger_repo.deposit(MAKER, NATIVE, 10_000_000)
    return MAKER
