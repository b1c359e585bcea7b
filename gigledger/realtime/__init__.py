"""Realtime change feed and wallet projection."""

from .capture import SessionChangeRecorder
from .events import ChangeAction, LedgerEvent, ResyncRequired, TransactionChanged, WalletChanged
from .feed import LedgerFeed, Subscription, feed
from .projection import ProjectionChange, WalletProjection

__all__ = [
    "ChangeAction",
    "LedgerEvent",
    "LedgerFeed",
    "ProjectionChange",
    "ResyncRequired",
    "SessionChangeRecorder",
    "Subscription",
    "TransactionChanged",
    "WalletChanged",
    "WalletProjection",
    "feed",
]
