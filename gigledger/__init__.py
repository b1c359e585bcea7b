"""Token ledger and promotion entitlement service for the Gigzz marketplace."""

__version__ = "0.3.0"
