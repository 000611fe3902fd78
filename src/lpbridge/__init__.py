"""lpbridge - liquidity-pool bridge ledger."""

__version__ = "0.1.0"
