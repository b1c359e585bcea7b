"""SQLAlchemy implementation for payment receipt repository"""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from gigledger.db.models import PaymentReceipt as PaymentReceiptModel, generate_uuid
from gigledger.infrastructure.database.types import utcnow
from gigledger.modules.payments.models import PaymentReceipt, ReceiptStatus

from .base import SqlRepository


class SqlPaymentReceiptRepository(SqlRepository):
    async def get_by_reference(self, reference: str) -> PaymentReceipt | None:
        stmt = (
            select(PaymentReceiptModel)
            .where(PaymentReceiptModel.reference == reference)
            .execution_options(populate_existing=True)
        )
        result = await self.execute(stmt)
        row = result.scalars().first()
        return _to_domain(row) if row else None

    async def create(
        self,
        *,
        reference: str,
        event: str,
        user_id: str | None,
        amount_minor: int,
        tokens: int,
    ) -> PaymentReceipt | None:
        receipt = PaymentReceiptModel(
            id=generate_uuid(),
            reference=reference,
            event=event,
            user_id=user_id,
            amount_minor=amount_minor,
            tokens=tokens,
            status=ReceiptStatus.RECEIVED.value,
            attempts=0,
            last_error=None,
            created_at=utcnow(),
            applied_at=None,
        )
        try:
            async with self.savepoint():
                self.session.add(receipt)
        except IntegrityError:
            return None
        return _to_domain(receipt)

    async def mark_applied(self, reference: str, *, attempts: int, applied_at: datetime) -> None:
        await self._update(
            reference,
            status=ReceiptStatus.APPLIED.value,
            attempts=attempts,
            applied_at=applied_at,
            last_error=None,
        )

    async def mark_failed(self, reference: str, *, attempts: int, error: str) -> None:
        await self._update(reference, status=ReceiptStatus.FAILED.value, attempts=attempts, last_error=error)

    async def mark_ignored(self, reference: str, *, reason: str) -> None:
        await self._update(reference, status=ReceiptStatus.IGNORED.value, last_error=reason)

    async def list_failed(self, limit: int) -> Sequence[PaymentReceipt]:
        stmt = (
            select(PaymentReceiptModel)
            .where(PaymentReceiptModel.status == ReceiptStatus.FAILED.value)
            .order_by(PaymentReceiptModel.created_at)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.execute(stmt)
        return [_to_domain(row) for row in result.scalars().all()]

    async def _update(self, reference: str, **values) -> None:
        stmt = (
            update(PaymentReceiptModel)
            .where(PaymentReceiptModel.reference == reference)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self.execute(stmt)


def _to_domain(model: PaymentReceiptModel) -> PaymentReceipt:
    return PaymentReceipt(
        id=model.id,
        reference=model.reference,
        event=model.event,
        user_id=model.user_id,
        amount_minor=model.amount_minor,
        tokens=model.tokens,
        status=ReceiptStatus(model.status),
        attempts=model.attempts,
        last_error=model.last_error,
        created_at=model.created_at,
        applied_at=model.applied_at,
    )
