"""Wallet domain exports"""

from .exceptions import (
    AlreadyApplied,
    AlreadyPromoted,
    DuplicatePaymentReference,
    EntityNotFound,
    InsufficientBalance,
    InvalidAmount,
    JobNotFound,
    PromotionConflict,
    StoreUnavailable,
    UnknownPromotionPlan,
    WalletError,
)
from .models import EntityKind, PromotionTag, TransactionRecord, WalletSnapshot

__all__ = [
    "AlreadyApplied",
    "AlreadyPromoted",
    "DuplicatePaymentReference",
    "EntityKind",
    "EntityNotFound",
    "InsufficientBalance",
    "InvalidAmount",
    "JobNotFound",
    "PromotionConflict",
    "PromotionTag",
    "StoreUnavailable",
    "TransactionRecord",
    "UnknownPromotionPlan",
    "WalletError",
    "WalletSnapshot",
]
