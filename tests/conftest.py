from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from gigledger.core.config import PaymentSettings, Settings
from gigledger.db import models
from gigledger.infrastructure.database.base import Base
from gigledger.infrastructure.database.session import enable_sqlite_savepoints
from gigledger.modules.wallets.service import WalletService
from gigledger.realtime import LedgerFeed

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def build_engine(path):
    """File backed so several connections can work on the same data concurrently."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{path}", future=True, poolclass=NullPool)
    enable_sqlite_savepoints(engine)
    return engine


@pytest_asyncio.fixture()
async def engine(tmp_path):
    engine = build_engine(tmp_path / "ledger.db")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def session(session_factory):
    """Provide an AsyncSession bound to a fresh SQLite database."""
    async with session_factory() as sess:
        yield sess


@pytest.fixture()
def settings():
    return Settings(
        environment="test",
        payments=PaymentSettings(secret_key="test-webhook-secret"),
    )


@pytest.fixture()
def ledger_feed():
    return LedgerFeed(queue_size=16)


@pytest.fixture()
def wallet_service(session, settings, ledger_feed):
    return WalletService.with_session(session, settings, ledger_feed)


async def seed_wallet(session, user_id: str, balance: int) -> None:
    session.add(models.Wallet(user_id=user_id, balance=balance, last_action=None, created_at=NOW, updated_at=None))
    await session.commit()


async def seed_job(session, job_id: str, employer_id: str, *, tag: str = "none", expires_at=None) -> None:
    session.add(
        models.Job(
            id=job_id,
            employer_id=employer_id,
            title=f"Job {job_id}",
            promotion_tag=tag,
            promotion_expires_at=expires_at,
            created_at=NOW - timedelta(days=30),
        )
    )
    await session.commit()


async def seed_profile(session, user_id: str, *, tag: str = "none", expires_at=None) -> None:
    session.add(
        models.Profile(
            id=user_id,
            display_name=f"Freelancer {user_id}",
            promotion_tag=tag,
            promotion_expires_at=expires_at,
            created_at=NOW - timedelta(days=30),
        )
    )
    await session.commit()
