"""Repository interface for payment receipts."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from .models import PaymentReceipt


class PaymentReceiptRepository(Protocol):
    async def get_by_reference(self, reference: str) -> PaymentReceipt | None:
        ...

    async def create(
        self,
        *,
        reference: str,
        event: str,
        user_id: str | None,
        amount_minor: int,
        tokens: int,
    ) -> PaymentReceipt | None:
        """Insert a receipt; ``None`` when the reference is already recorded."""
        ...

    async def mark_applied(self, reference: str, *, attempts: int, applied_at: datetime) -> None:
        ...

    async def mark_failed(self, reference: str, *, attempts: int, error: str) -> None:
        ...

    async def mark_ignored(self, reference: str, *, reason: str) -> None:
        ...

    async def list_failed(self, limit: int) -> Sequence[PaymentReceipt]:
        ...
