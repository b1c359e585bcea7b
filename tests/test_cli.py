"""
Tests for the operational commands.
"""

import asyncio
import logging

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gigledger import cli
from gigledger.core.config import get_settings
from gigledger.db import models
from gigledger.infrastructure.database import session as session_module
from gigledger.modules.wallets.exceptions import StoreUnavailable
from gigledger.modules.wallets.service import WalletService

from conftest import NOW, build_engine


@pytest.fixture()
def database_path(tmp_path, monkeypatch):
    """Point the CLI at a throwaway database and keep its logging config local."""
    path = tmp_path / "cli.db"
    monkeypatch.setenv("DATABASE__URL", f"sqlite+aiosqlite:///{path}")
    monkeypatch.setattr(session_module, "_engine", None)
    monkeypatch.setattr(session_module, "AsyncSessionFactory", None)
    package_logger = logging.getLogger("gigledger")
    monkeypatch.setattr(package_logger, "handlers", list(package_logger.handlers))
    monkeypatch.setattr(package_logger, "propagate", package_logger.propagate)
    monkeypatch.setattr(package_logger, "level", package_logger.level)
    get_settings.cache_clear()
    yield path
    get_settings.cache_clear()


def _seed_failed_receipt(path, reference: str) -> None:
    async def seed():
        engine = build_engine(path)
        factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        async with factory() as db:
            db.add(
                models.PaymentReceipt(
                    reference=reference,
                    event="charge.success",
                    user_id="user-1",
                    amount_minor=250_000,
                    tokens=10,
                    status="failed",
                    attempts=3,
                    last_error="StoreUnavailable: down",
                    created_at=NOW,
                    applied_at=None,
                )
            )
            await db.commit()
        await engine.dispose()

    asyncio.run(seed())


def _balance(path, user_id: str):
    async def read():
        engine = build_engine(path)
        factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        async with factory() as db:
            wallet = await db.get(models.Wallet, user_id)
            balance = wallet.balance if wallet else None
        await engine.dispose()
        return balance

    return asyncio.run(read())


class TestRetryPayments:
    def test_nothing_to_retry(self, database_path, capsys):
        assert cli.main(["init-db"]) == 0
        assert cli.main(["retry-payments"]) == 0
        assert "No failed payments to retry" in capsys.readouterr().out

    def test_still_failing_exits_non_zero(self, database_path, capsys, monkeypatch):
        assert cli.main(["init-db"]) == 0
        _seed_failed_receipt(database_path, "ps-stuck")

        async def store_down(self, user_id, tokens, payment_reference):
            raise StoreUnavailable()

        monkeypatch.setattr(WalletService, "fund_from_payment", store_down)

        assert cli.main(["retry-payments", "--limit", "5"]) == 1
        assert "ps-stuck: failed" in capsys.readouterr().out
        assert _balance(database_path, "user-1") is None

    def test_recovered_store_applies_the_credit(self, database_path, capsys):
        assert cli.main(["init-db"]) == 0
        _seed_failed_receipt(database_path, "ps-late")

        assert cli.main(["retry-payments"]) == 0
        assert "ps-late: applied" in capsys.readouterr().out
        assert _balance(database_path, "user-1") == 10
