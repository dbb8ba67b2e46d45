"""Ledger clock."""

import time
from typing import Optional


def resolve_now(now: Optional[int] = None) -> int:
    """Explicit timestamp if given, else the current Unix second."""
    return int(time.time()) if now is None else now
