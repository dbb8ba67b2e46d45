"""Tests for partial-fill accounting and Dutch auction pricing."""

import pytest

from fusionswap.core.pricing import decayed_amount
from fusionswap.core.segments import (
    cumulative_amount,
    fill_amount,
    is_fully_filled,
    part_count,
    segment_share,
)
from fusionswap.errors import AuctionNotStartedError


class TestSegments:
    """Segment math for an order split into ``hashes - 1`` parts."""

    def test_part_count(self):
        assert part_count(1) == 1
        assert part_count(2) == 1
        assert part_count(11) == 10

    def test_cumulative_three_of_ten(self):
        assert cumulative_amount(1_000, 2, 11) == 300

    def test_nothing_filled(self):
        assert cumulative_amount(1_000, None, 11) == 0

    def test_completion_leaf_takes_everything(self):
        assert cumulative_amount(1_000, 9, 11) == 1_000
        assert cumulative_amount(1_000, 10, 11) == 1_000

    def test_fill_amount_from_watermark(self):
        assert fill_amount(1_000, None, 2, 11) == 300
        assert fill_amount(1_000, 2, 5, 11) == 300
        assert fill_amount(1_000, 5, 10, 11) == 400

    def test_shares_sum_to_total_with_rounding(self):
        total = 1_001
        shares = [segment_share(total, k, 4) for k in range(3)]

        assert shares == [333, 334, 334]
        assert sum(shares) == total

    def test_single_hash_has_one_segment(self):
        assert cumulative_amount(777, 0, 1) == 777
        assert is_fully_filled(0, 1)

    def test_is_fully_filled(self):
        assert not is_fully_filled(2, 11)
        assert not is_fully_filled(8, 11)
        assert is_fully_filled(9, 11)
        assert is_fully_filled(10, 11)


class TestDecayedAmount:
    """Linear price decay."""

    def test_midpoint_quarter(self):
        assert decayed_amount(1_000_000_000, 0, 1_000, 1_000, 1_250) == 750_000_000

    def test_at_start(self):
        assert decayed_amount(1_000, 500, 100, 50, 100) == 1_000

    def test_after_decay_stays_at_ending(self):
        assert decayed_amount(1_000, 500, 100, 50, 150) == 500
        assert decayed_amount(1_000, 500, 100, 50, 10_000) == 500

    def test_zero_decay_duration(self):
        assert decayed_amount(1_000, 500, 100, 0, 100) == 500

    def test_rounds_toward_starting_amount(self):
        # 1000 - floor(1000 * 1 / 3)
        assert decayed_amount(1_000, 0, 0, 3, 1) == 667

    def test_before_start_raises(self):
        with pytest.raises(AuctionNotStartedError):
            decayed_amount(1_000, 0, 100, 50, 99)

    def test_never_increases(self):
        prices = [decayed_amount(10_000, 3_000, 0, 97, t) for t in range(0, 120)]

        assert all(a >= b for a, b in zip(prices, prices[1:]))
        assert all(3_000 <= p <= 10_000 for p in prices)
