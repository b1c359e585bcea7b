"""Domain models for payment confirmations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

CHARGE_SUCCESS = "charge.success"


class ReceiptStatus(str, Enum):
    RECEIVED = "received"
    APPLIED = "applied"
    FAILED = "failed"
    IGNORED = "ignored"


class WebhookOutcome(str, Enum):
    APPLIED = "applied"
    DUPLICATE = "duplicate"
    IGNORED = "ignored"
    FAILED = "failed"


@dataclass(slots=True)
class PaymentEvent:
    event: str
    reference: str
    amount_minor: int
    user_id: Optional[str]


@dataclass(slots=True)
class PaymentReceipt:
    id: str
    reference: str
    event: str
    user_id: Optional[str]
    amount_minor: int
    tokens: int
    status: ReceiptStatus
    attempts: int
    last_error: Optional[str]
    created_at: datetime
    applied_at: Optional[datetime]


@dataclass(slots=True)
class WebhookResult:
    outcome: WebhookOutcome
    reference: Optional[str] = None
    tokens: int = 0
    balance: Optional[int] = None

    @property
    def ledger_applied(self) -> bool:
        return self.outcome is WebhookOutcome.APPLIED


@dataclass(slots=True)
class CheckoutSession:
    authorization_url: str
    access_code: Optional[str]
    reference: str
