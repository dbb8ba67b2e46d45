"""Ledger module: asset balances, swap records and the event log."""

from fusionswap.ledger.database import get_db, init_db
from fusionswap.ledger.models import (
    Balance,
    DutchAuction,
    Escrow,
    FusionOrder,
    SwapEvent,
    SwapEventType,
    Transfer,
)
from fusionswap.ledger.repository import LedgerRepository

__all__ = [
    # Models
    "Balance",
    "Transfer",
    "DutchAuction",
    "FusionOrder",
    "Escrow",
    "SwapEvent",
    # Enums
    "SwapEventType",
    # Database
    "get_db",
    "init_db",
    "LedgerRepository",
]
