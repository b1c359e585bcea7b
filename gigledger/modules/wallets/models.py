"""Domain models for wallet operations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class PromotionTag(str, Enum):
    NONE = "none"
    SILVER = "silver"
    GOLD = "gold"
    PREMIUM = "premium"


class EntityKind(str, Enum):
    JOB = "job"
    PROFILE = "profile"


@dataclass(slots=True)
class WalletSnapshot:
    user_id: str
    balance: int
    last_action: Optional[str]
    updated_at: Optional[datetime]


@dataclass(slots=True)
class TransactionRecord:
    id: str
    user_id: str
    description: str
    tokens_in: int
    tokens_out: int
    created_at: datetime
    reference: Optional[str] = None


@dataclass(slots=True)
class PromotableEntity:
    id: str
    kind: EntityKind
    owner_id: str
    promotion_tag: PromotionTag
    promotion_expires_at: Optional[datetime]


@dataclass(slots=True)
class PlanTerms:
    name: str
    cost: int
    duration_days: int


@dataclass(slots=True)
class PromotionQuote:
    entity_id: str
    entity_kind: EntityKind
    plan: PlanTerms
    balance: int
    active: bool
    current_tag: PromotionTag
    current_expires_at: Optional[datetime]
    would_extend: bool
    allowed: bool
    affordable: bool
    new_expires_at: Optional[datetime]

    @property
    def requires_confirmation(self) -> bool:
        return self.would_extend


@dataclass(slots=True)
class PromotionResult:
    entity: PromotableEntity
    wallet: WalletSnapshot
    plan: PlanTerms
    extended: bool


@dataclass(slots=True)
class JobSummary:
    id: str
    employer_id: str
    title: str


@dataclass(slots=True)
class ApplicationRecord:
    id: str
    job_id: str
    applicant_id: str
    cover_letter: Optional[str]
    bid_amount: Optional[int]
    tokens_spent: int
    created_at: datetime


@dataclass(slots=True)
class ApplicationResult:
    application: ApplicationRecord
    wallet: WalletSnapshot
