"""tally - epoch-bounded data collection ledger."""

__version__ = "0.1.0"
