"""Validation shared by DutchAuction and FusionOrder fills."""

from typing import Optional, Union

from fusionswap.core.segments import cumulative_amount
from fusionswap.errors import (
    InvalidFillTypeError,
    InvalidResolverError,
    InvalidSegmentError,
    SegmentAlreadyFilledError,
)
from fusionswap.ledger.models import DutchAuction, FusionOrder
from fusionswap.ledger.repository import LedgerRepository

Fillable = Union[DutchAuction, FusionOrder]


def check_resolver(obj: Fillable, taker: str) -> None:
    if taker not in obj.resolver_whitelist:
        raise InvalidResolverError(f"{taker} is not whitelisted for {obj.address}")


def resolve_segment(obj: Fillable, upto_segment: Optional[int]) -> int:
    """Validate the requested fill and return the segment it reaches.

    Single-hash objects take no segment and always fill segment 0. Multi-hash
    objects need ``watermark < upto_segment < leaf_count``.
    """
    if not obj.allows_partial_fills:
        if upto_segment is not None:
            raise InvalidFillTypeError("Segment given for a single-fill order")
        return 0

    if upto_segment is None:
        raise InvalidFillTypeError("Partial-fill order needs a segment index")
    if upto_segment < 0:
        raise InvalidSegmentError(f"Segment {upto_segment} is negative")
    if obj.fill_watermark is not None and upto_segment <= obj.fill_watermark:
        raise SegmentAlreadyFilledError(
            f"Segment {upto_segment} already filled (watermark {obj.fill_watermark})"
        )
    if upto_segment >= obj.hashlock_leaf_count:
        raise InvalidSegmentError(
            f"Segment {upto_segment} out of range for {obj.hashlock_leaf_count} hashes"
        )
    return upto_segment


def remaining_safety_deposit(obj: Fillable) -> int:
    """Safety deposit not yet handed to escrows."""
    return obj.safety_deposit - cumulative_amount(
        obj.safety_deposit, obj.fill_watermark, obj.hashlock_leaf_count
    )


async def remaining_asset(repo: LedgerRepository, obj: Fillable) -> int:
    """Traded asset still held by the object, excluding its safety deposit."""
    held = await repo.get_balance_amount(obj.address, obj.asset)
    if obj.asset == obj.safety_deposit_asset:
        held -= remaining_safety_deposit(obj)
    return held
