"""Personal-finance transaction ledger and aggregation service."""

__version__ = "1.0.0"
