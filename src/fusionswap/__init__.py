"""FusionSwap: hashlock/timelock atomic swap ledger."""

__version__ = "0.1.0"
