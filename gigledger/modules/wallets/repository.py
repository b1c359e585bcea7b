"""Repository protocols for wallet, promotion and application storage."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from .models import (
    ApplicationRecord,
    EntityKind,
    JobSummary,
    PromotableEntity,
    PromotionTag,
    TransactionRecord,
    WalletSnapshot,
)


class WalletRepository(Protocol):
    async def get_wallet(self, user_id: str) -> WalletSnapshot | None:
        ...

    async def create_wallet(self, user_id: str) -> WalletSnapshot:
        ...

    async def apply_credit(self, user_id: str, amount: int, last_action: str) -> WalletSnapshot | None:
        """Add ``amount`` atomically; ``None`` when the wallet does not exist."""
        ...

    async def apply_debit(self, user_id: str, amount: int, last_action: str) -> WalletSnapshot | None:
        """Subtract ``amount`` only if the balance covers it; ``None`` otherwise."""
        ...

    async def add_transaction(
        self,
        *,
        user_id: str,
        description: str,
        tokens_in: int,
        tokens_out: int,
        reference: str | None = None,
    ) -> TransactionRecord:
        ...

    async def get_transaction_by_reference(self, reference: str) -> TransactionRecord | None:
        ...

    async def list_transactions(self, user_id: str, limit: int, offset: int) -> Sequence[TransactionRecord]:
        ...


class PromotionRepository(Protocol):
    async def get_entity(self, kind: EntityKind, entity_id: str) -> PromotableEntity | None:
        ...

    async def write_promotion(
        self,
        kind: EntityKind,
        entity_id: str,
        *,
        tag: PromotionTag,
        expires_at: datetime,
        expected_expiry: datetime | None,
    ) -> bool:
        """Compare-and-set; false when the stored expiry is no longer ``expected_expiry``."""
        ...


class ApplicationRepository(Protocol):
    async def get_job(self, job_id: str) -> JobSummary | None:
        ...

    async def find_application(self, job_id: str, applicant_id: str) -> ApplicationRecord | None:
        ...

    async def add_application(
        self,
        *,
        job_id: str,
        applicant_id: str,
        cover_letter: str | None,
        bid_amount: int | None,
        tokens_spent: int,
    ) -> ApplicationRecord:
        ...
