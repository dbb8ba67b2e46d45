"""Pure swap primitives: hashlocks, timelocks, segment math and pricing."""

from fusionswap.core.hashlock import (
    Hashlock,
    build_merkle_root,
    hash_secret,
    merkle_proof,
)
from fusionswap.core.pricing import decayed_amount
from fusionswap.core.segments import (
    cumulative_amount,
    fill_amount,
    is_fully_filled,
    part_count,
    segment_share,
)
from fusionswap.core.timelock import (
    CANCELLATION_PHASES,
    PHASE_ORDER,
    WITHDRAWAL_PHASES,
    Phase,
    Timelock,
)

__all__ = [
    "Hashlock",
    "build_merkle_root",
    "hash_secret",
    "merkle_proof",
    "decayed_amount",
    "cumulative_amount",
    "fill_amount",
    "is_fully_filled",
    "part_count",
    "segment_share",
    "Phase",
    "PHASE_ORDER",
    "Timelock",
    "WITHDRAWAL_PHASES",
    "CANCELLATION_PHASES",
]
