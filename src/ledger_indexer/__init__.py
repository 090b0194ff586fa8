"""ledger-indexer: confirmation-aware index of parcels and asset outputs."""

__version__ = "0.1.0"
