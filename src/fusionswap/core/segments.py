"""Segment accounting for partial fills.

An order committed to ``H`` hashes is split into ``N = H - 1`` equal parts.
Filling "through segment k" brings the cumulative fill to
``floor(total * (k + 1) / N)``, with the last part absorbing the rounding
remainder. The extra leaf ``k = N`` is the completion secret and always
means "everything that remains". A single-hash order has one implicit
segment covering the whole amount.
"""

from typing import Optional


def part_count(leaf_count: int) -> int:
    """Number of equal parts an order with ``leaf_count`` hashes is split into."""
    if leaf_count <= 1:
        return 1
    return leaf_count - 1


def cumulative_amount(total: int, upto_segment: Optional[int], leaf_count: int) -> int:
    """Amount filled once segments ``0..upto_segment`` have been claimed."""
    if upto_segment is None:
        return 0
    parts = part_count(leaf_count)
    if upto_segment + 1 >= parts:
        return total
    return total * (upto_segment + 1) // parts


def segment_share(total: int, segment: int, leaf_count: int) -> int:
    """Amount attributed to a single segment."""
    previous = segment - 1 if segment > 0 else None
    return cumulative_amount(total, segment, leaf_count) - cumulative_amount(
        total, previous, leaf_count
    )


def fill_amount(
    total: int,
    watermark: Optional[int],
    upto_segment: int,
    leaf_count: int,
) -> int:
    """Amount claimed by moving the watermark from ``watermark`` to ``upto_segment``."""
    return cumulative_amount(total, upto_segment, leaf_count) - cumulative_amount(
        total, watermark, leaf_count
    )


def is_fully_filled(upto_segment: int, leaf_count: int) -> bool:
    """True once the watermark covers the last part."""
    return upto_segment + 1 >= part_count(leaf_count)
