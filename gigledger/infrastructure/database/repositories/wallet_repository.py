"""SQLAlchemy implementation for wallet domain"""

from __future__ import annotations

from sqlalchemy import desc, select, update
from sqlalchemy.exc import IntegrityError

from gigledger.db.models import TokenTransaction, Wallet, generate_uuid
from gigledger.infrastructure.database.types import utcnow
from gigledger.modules.wallets.exceptions import DuplicatePaymentReference
from gigledger.modules.wallets.models import TransactionRecord, WalletSnapshot

from .base import SqlRepository

_RETURNED_COLUMNS = (Wallet.user_id, Wallet.balance, Wallet.last_action, Wallet.updated_at)


class SqlWalletRepository(SqlRepository):
    async def get_wallet(self, user_id: str) -> WalletSnapshot | None:
        stmt = (
            select(Wallet)
            .where(Wallet.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        result = await self.execute(stmt)
        wallet = result.scalars().first()
        return _to_snapshot(wallet) if wallet else None

    async def create_wallet(self, user_id: str) -> WalletSnapshot:
        wallet = Wallet(user_id=user_id, balance=0, last_action=None, created_at=utcnow(), updated_at=None)
        try:
            async with self.savepoint():
                self.session.add(wallet)
        except IntegrityError:
            # lost the race against a concurrent first read
            existing = await self.get_wallet(user_id)
            if existing is None:
                raise
            return existing
        return _to_snapshot(wallet)

    async def apply_credit(self, user_id: str, amount: int, last_action: str) -> WalletSnapshot | None:
        stmt = (
            update(Wallet)
            .where(Wallet.user_id == user_id)
            .values(balance=Wallet.balance + amount, last_action=last_action, updated_at=utcnow())
            .returning(*_RETURNED_COLUMNS)
            .execution_options(synchronize_session=False)
        )
        result = await self.execute(stmt)
        return _row_to_snapshot(result.first())

    async def apply_debit(self, user_id: str, amount: int, last_action: str) -> WalletSnapshot | None:
        stmt = (
            update(Wallet)
            .where(Wallet.user_id == user_id, Wallet.balance >= amount)
            .values(balance=Wallet.balance - amount, last_action=last_action, updated_at=utcnow())
            .returning(*_RETURNED_COLUMNS)
            .execution_options(synchronize_session=False)
        )
        result = await self.execute(stmt)
        return _row_to_snapshot(result.first())

    async def add_transaction(
        self,
        *,
        user_id: str,
        description: str,
        tokens_in: int,
        tokens_out: int,
        reference: str | None = None,
    ) -> TransactionRecord:
        tx = TokenTransaction(
            id=generate_uuid(),
            user_id=user_id,
            description=description,
            tokens_in=tokens_in,
            tokens_out=tokens_out,
            reference=reference,
            created_at=utcnow(),
        )
        self.session.add(tx)
        try:
            await self.flush()
        except IntegrityError as exc:
            if reference is None:
                raise
            raise DuplicatePaymentReference(reference) from exc
        return _to_record(tx)

    async def get_transaction_by_reference(self, reference: str) -> TransactionRecord | None:
        stmt = select(TokenTransaction).where(TokenTransaction.reference == reference)
        result = await self.execute(stmt)
        tx = result.scalars().first()
        return _to_record(tx) if tx else None

    async def list_transactions(self, user_id: str, limit: int, offset: int) -> list[TransactionRecord]:
        stmt = (
            select(TokenTransaction)
            .where(TokenTransaction.user_id == user_id)
            .order_by(desc(TokenTransaction.created_at), desc(TokenTransaction.id))
            .offset(offset)
            .limit(limit)
        )
        result = await self.execute(stmt)
        return [_to_record(row) for row in result.scalars().all()]


def _to_snapshot(model: Wallet) -> WalletSnapshot:
    return WalletSnapshot(
        user_id=model.user_id,
        balance=model.balance,
        last_action=model.last_action,
        updated_at=model.updated_at,
    )


def _row_to_snapshot(row) -> WalletSnapshot | None:
    if row is None:
        return None
    return WalletSnapshot(
        user_id=row.user_id,
        balance=row.balance,
        last_action=row.last_action,
        updated_at=row.updated_at,
    )


def _to_record(model: TokenTransaction) -> TransactionRecord:
    return TransactionRecord(
        id=model.id,
        user_id=model.user_id,
        description=model.description,
        tokens_in=model.tokens_in,
        tokens_out=model.tokens_out,
        created_at=model.created_at,
        reference=model.reference,
    )
