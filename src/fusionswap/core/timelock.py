"""Timelock phase clock.

The phase is never stored: it is recomputed from ``created_at``, the four
durations and the query time.

    created_at
    |-- finality --|-- exclusive withdrawal --|-- public withdrawal --|
    |-- private cancellation --|-- public cancellation (unbounded) ...
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Phase(str, Enum):
    """Timelock phases in their fixed order."""

    FINALITY = "finality"
    EXCLUSIVE_WITHDRAWAL = "exclusive_withdrawal"
    PUBLIC_WITHDRAWAL = "public_withdrawal"
    PRIVATE_CANCELLATION = "private_cancellation"
    PUBLIC_CANCELLATION = "public_cancellation"


PHASE_ORDER = (
    Phase.FINALITY,
    Phase.EXCLUSIVE_WITHDRAWAL,
    Phase.PUBLIC_WITHDRAWAL,
    Phase.PRIVATE_CANCELLATION,
    Phase.PUBLIC_CANCELLATION,
)

WITHDRAWAL_PHASES = frozenset({Phase.EXCLUSIVE_WITHDRAWAL, Phase.PUBLIC_WITHDRAWAL})
CANCELLATION_PHASES = frozenset({Phase.PRIVATE_CANCELLATION, Phase.PUBLIC_CANCELLATION})


@dataclass(frozen=True)
class Timelock:
    """Phase clock anchored at ``created_at`` (Unix seconds)."""

    created_at: int
    finality_duration: int
    exclusive_withdrawal_duration: int
    public_withdrawal_duration: int
    private_cancellation_duration: int

    def __post_init__(self) -> None:
        for name, value in (
            ("created_at", self.created_at),
            *zip(
                (
                    "finality_duration",
                    "exclusive_withdrawal_duration",
                    "public_withdrawal_duration",
                    "private_cancellation_duration",
                ),
                self.get_durations(),
            ),
        ):
            if not isinstance(value, int) or value < 0:
                raise ValueError(f"{name} must be a non-negative integer, got {value!r}")

    @classmethod
    def new(
        cls,
        created_at: int,
        finality: int,
        exclusive_withdrawal: int,
        public_withdrawal: int,
        private_cancellation: int,
    ) -> "Timelock":
        """Timelock starting at ``created_at`` with the four phase lengths in order."""
        return cls(
            created_at,
            finality,
            exclusive_withdrawal,
            public_withdrawal,
            private_cancellation,
        )

    def get_durations(self) -> tuple[int, int, int, int]:
        return (
            self.finality_duration,
            self.exclusive_withdrawal_duration,
            self.public_withdrawal_duration,
            self.private_cancellation_duration,
        )

    def phase_start(self, phase: Phase) -> int:
        """Timestamp at which ``phase`` begins."""
        start = self.created_at
        for current, duration in zip(PHASE_ORDER, self.get_durations()):
            if current == phase:
                return start
            start += duration
        return start

    def phase_end(self, phase: Phase) -> Optional[int]:
        """Exclusive end of ``phase``; None for public cancellation."""
        if phase == Phase.PUBLIC_CANCELLATION:
            return None
        index = PHASE_ORDER.index(phase)
        return self.phase_start(PHASE_ORDER[index + 1])

    def current_phase(self, now: int) -> Phase:
        boundary = self.created_at
        for phase, duration in zip(PHASE_ORDER, self.get_durations()):
            boundary += duration
            if now < boundary:
                return phase
        return Phase.PUBLIC_CANCELLATION

    def is_in_phase(self, phase: Phase, now: int) -> bool:
        return self.current_phase(now) == phase
