"""HTTP API for the swap ledger."""
