"""Wallet domain specific exceptions.

Every error carries a ``message`` that is safe to show to the end user.
"""

from __future__ import annotations

from datetime import datetime


class WalletError(Exception):
    """Base class for wallet and entitlement errors."""

    message = "Wallet operation failed."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidAmount(WalletError):
    """Raised for non-positive credit or debit amounts."""

    def __init__(self, amount: int) -> None:
        self.amount = amount
        super().__init__(f"Token amount must be positive, got {amount}.")


class InsufficientBalance(WalletError):
    """Raised when a debit would take the balance below zero."""

    def __init__(self, balance: int, required: int) -> None:
        self.balance = balance
        self.required = required
        super().__init__(
            f"Insufficient token balance: {required} required, {balance} available. "
            "Kindly fund your wallet and try again."
        )


class AlreadyPromoted(WalletError):
    """Raised when a job is promoted while an earlier promotion is still running."""

    def __init__(self, expires_at: datetime | None) -> None:
        self.expires_at = expires_at
        until = expires_at.strftime("%a %b %d %Y") if expires_at else "later"
        super().__init__(f"Already promoted until {until}.")


class PromotionConflict(WalletError):
    """Raised when the entity's promotion changed while we were writing it."""

    message = "The promotion was changed by another request. Please try again."


class UnknownPromotionPlan(WalletError):
    def __init__(self, plan: str) -> None:
        self.plan = plan
        super().__init__(f"Unknown promotion plan: {plan}.")


class EntityNotFound(WalletError):
    def __init__(self, kind: str, entity_id: str) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind.capitalize()} {entity_id} not found.")


class JobNotFound(EntityNotFound):
    def __init__(self, job_id: str) -> None:
        super().__init__("job", job_id)


class AlreadyApplied(WalletError):
    message = "You have already applied for this job."


class DuplicatePaymentReference(WalletError):
    """Raised when a payment reference has already been credited."""

    def __init__(self, reference: str) -> None:
        self.reference = reference
        super().__init__(f"Payment {reference} has already been applied.")


class StoreUnavailable(WalletError):
    """Raised when the backing store fails for operational reasons."""

    message = "The wallet service is temporarily unavailable."
