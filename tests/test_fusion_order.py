"""Tests for fusion orders (source-chain fills)."""

import pytest

from fusionswap.errors import (
    InsufficientBalanceError,
    InvalidCallerError,
    InvalidFillTypeError,
    InvalidHashesError,
    InvalidOrderParamsError,
    InvalidResolverError,
    InvalidResolverWhitelistError,
    InvalidSegmentError,
    ObjectDoesNotExistError,
    SegmentAlreadyFilledError,
)
from fusionswap.router import SwapRouter
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

MAKER_ASSET = 10_000_000_000
MAKER_NATIVE = 10_000_000


async def create_order(router: SwapRouter, hash_count=1, **overrides):
    params = dict(
        maker=MAKER,
        order_hash="0xfusion",
        hashes=make_hashes(make_secrets(hash_count)),
        asset=ASSET,
        amount=1_000,
        safety_deposit=100,
        resolver_whitelist=[RESOLVER, OTHER_RESOLVER],
    )
    params.update(overrides)
    return await router.create_fusion_order(**params)


class TestCreateOrder:
    @pytest.mark.asyncio
    async def test_create_locks_funds(self, swap_router: SwapRouter, funded_maker):
        order = await create_order(swap_router)

        assert order.stale_timestamp is None
        assert await swap_router.balance(order.address, ASSET) == 1_000
        assert await swap_router.balance(order.address, NATIVE) == 100
        assert await swap_router.balance(MAKER, ASSET) == MAKER_ASSET - 1_000

    @pytest.mark.asyncio
    @pytest.mark.parametrize("overrides", [{"amount": 0}, {"safety_deposit": 0}])
    async def test_invalid_params(self, swap_router: SwapRouter, funded_maker, overrides):
        with pytest.raises(InvalidOrderParamsError):
            await create_order(swap_router, **overrides)

    @pytest.mark.asyncio
    async def test_invalid_hashes_and_whitelist(self, swap_router: SwapRouter, funded_maker):
        with pytest.raises(InvalidHashesError):
            await create_order(swap_router, hashes=[])
        with pytest.raises(InvalidResolverWhitelistError):
            await create_order(swap_router, resolver_whitelist=[])

    @pytest.mark.asyncio
    async def test_insufficient_funds(self, swap_router: SwapRouter):
        with pytest.raises(InsufficientBalanceError):
            await create_order(swap_router)


class TestFillOrder:
    @pytest.mark.asyncio
    async def test_single_fill(self, swap_router: SwapRouter, funded_maker, settings):
        order = await create_order(swap_router)

        escrow = await swap_router.deploy_source_single_fill(RESOLVER, order.address, T0)

        assert escrow.amount == 1_000
        assert escrow.safety_deposit == 100
        assert escrow.is_source_chain is True
        assert escrow.timelock.get_durations() == settings.source_durations
        assert await swap_router.balance(escrow.address, ASSET) == 1_000
        with pytest.raises(ObjectDoesNotExistError):
            await swap_router.orders.get_order(order.address)

    @pytest.mark.asyncio
    async def test_partial_fills(self, swap_router: SwapRouter, funded_maker):
        order = await create_order(swap_router, hash_count=5)

        first = await swap_router.deploy_source_partial_fill(RESOLVER, order.address, 1, T0)
        assert first.amount == 500
        assert first.safety_deposit == 50
        assert order.fill_watermark == 1

        with pytest.raises(SegmentAlreadyFilledError):
            await swap_router.deploy_source_partial_fill(OTHER_RESOLVER, order.address, 0, T0)
        with pytest.raises(InvalidSegmentError):
            await swap_router.deploy_source_partial_fill(OTHER_RESOLVER, order.address, 5, T0)

        last = await swap_router.deploy_source_partial_fill(OTHER_RESOLVER, order.address, 4, T0)
        assert last.amount == 500
        assert last.taker == OTHER_RESOLVER
        with pytest.raises(ObjectDoesNotExistError):
            await swap_router.orders.get_order(order.address)

    @pytest.mark.asyncio
    async def test_fill_type_must_match(self, swap_router: SwapRouter, funded_maker):
        single = await create_order(swap_router)
        multi = await create_order(swap_router, hash_count=3)

        with pytest.raises(InvalidFillTypeError):
            await swap_router.deploy_source_partial_fill(RESOLVER, single.address, 0, T0)
        with pytest.raises(InvalidFillTypeError):
            await swap_router.deploy_source_single_fill(RESOLVER, multi.address, T0)

    @pytest.mark.asyncio
    async def test_not_whitelisted(self, swap_router: SwapRouter, funded_maker):
        order = await create_order(swap_router)

        with pytest.raises(InvalidResolverError):
            await swap_router.deploy_source_single_fill(STRANGER, order.address, T0)
        assert await swap_router.balance(order.address, ASSET) == 1_000


class TestCancelOrder:
    """Maker cancels any time; others only once the order is stale."""

    @pytest.mark.asyncio
    async def test_maker_cancels(self, swap_router: SwapRouter, funded_maker):
        order = await create_order(swap_router, stale_timestamp=T0 + 100)

        refunded = await swap_router.cancel_fusion_order(MAKER, order.address, T0)

        assert refunded == 1_000
        assert await swap_router.balance(MAKER, ASSET) == MAKER_ASSET
        assert await swap_router.balance(MAKER, NATIVE) == MAKER_NATIVE

    @pytest.mark.asyncio
    async def test_stranger_before_stale(self, swap_router: SwapRouter, funded_maker):
        order = await create_order(swap_router, stale_timestamp=T0 + 100)

        with pytest.raises(InvalidCallerError):
            await swap_router.cancel_fusion_order(STRANGER, order.address, T0 + 99)
        assert await swap_router.balance(order.address, ASSET) == 1_000

    @pytest.mark.asyncio
    async def test_stranger_after_stale_keeps_deposit(self, swap_router: SwapRouter, funded_maker):
        order = await create_order(swap_router, stale_timestamp=T0 + 100)

        refunded = await swap_router.cancel_fusion_order(STRANGER, order.address, T0 + 100)

        assert refunded == 1_000
        assert await swap_router.balance(MAKER, ASSET) == MAKER_ASSET
        assert await swap_router.balance(MAKER, NATIVE) == MAKER_NATIVE - 100
        assert await swap_router.balance(STRANGER, NATIVE) == 100
        with pytest.raises(ObjectDoesNotExistError):
            await swap_router.orders.get_order(order.address)

    @pytest.mark.asyncio
    async def test_never_stale_without_timestamp(self, swap_router: SwapRouter, funded_maker):
        order = await create_order(swap_router)

        with pytest.raises(InvalidCallerError):
            await swap_router.cancel_fusion_order(STRANGER, order.address, T0 + 10**9)

    @pytest.mark.asyncio
    async def test_cancel_after_partial_fill(self, swap_router: SwapRouter, funded_maker):
        order = await create_order(swap_router, hash_count=5)
        await swap_router.deploy_source_partial_fill(RESOLVER, order.address, 0, T0)

        refunded = await swap_router.cancel_fusion_order(MAKER, order.address, T0)

        assert refunded == 750
        assert await swap_router.balance(MAKER, ASSET) == MAKER_ASSET - 250
        assert await swap_router.balance(MAKER, NATIVE) == MAKER_NATIVE - 25
