"""
Tests for wallet balance mutations and token spends.
"""

import asyncio

import pytest
from sqlalchemy import func, select

from gigledger.db import models
from gigledger.modules.wallets.exceptions import (
    AlreadyApplied,
    InsufficientBalance,
    InvalidAmount,
    JobNotFound,
)
from gigledger.modules.wallets.service import WalletService

from conftest import seed_job, seed_wallet


async def _transaction_count(session, user_id: str) -> int:
    result = await session.execute(
        select(func.count()).select_from(models.TokenTransaction).where(models.TokenTransaction.user_id == user_id)
    )
    return result.scalar_one()


class TestWalletLifecycle:
    @pytest.mark.asyncio
    async def test_wallet_created_lazily_with_zero_balance(self, wallet_service, session):
        wallet = await wallet_service.get_or_create_wallet("user-1")
        await session.commit()
        assert wallet.user_id == "user-1"
        assert wallet.balance == 0

    @pytest.mark.asyncio
    async def test_get_or_create_is_idempotent(self, wallet_service, session):
        await wallet_service.get_or_create_wallet("user-1")
        await wallet_service.get_or_create_wallet("user-1")
        await session.commit()
        result = await session.execute(select(func.count()).select_from(models.Wallet))
        assert result.scalar_one() == 1

    @pytest.mark.asyncio
    async def test_credit_creates_missing_wallet(self, wallet_service, session):
        wallet = await wallet_service.credit("user-2", 5, "Welcome bonus")
        await session.commit()
        assert wallet.balance == 5
        assert wallet.last_action == "Welcome bonus"


class TestCreditAndDebit:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -3, True])
    async def test_non_positive_amounts_rejected(self, wallet_service, amount):
        with pytest.raises(InvalidAmount):
            await wallet_service.credit("user-1", amount, "bad")
        with pytest.raises(InvalidAmount):
            await wallet_service.debit("user-1", amount, "bad")

    @pytest.mark.asyncio
    async def test_credit_then_debit_restores_balance(self, wallet_service, session):
        await seed_wallet(session, "user-1", 4)
        await wallet_service.credit("user-1", 6, "Top up")
        wallet = await wallet_service.debit("user-1", 6, "Spend")
        await session.commit()

        assert wallet.balance == 4
        transactions = await wallet_service.list_transactions("user-1")
        assert len(transactions) == 2
        assert sorted((tx.tokens_in, tx.tokens_out) for tx in transactions) == [(0, 6), (6, 0)]

    @pytest.mark.asyncio
    async def test_failed_debit_changes_nothing(self, wallet_service, session):
        await seed_wallet(session, "user-1", 2)
        before = await _transaction_count(session, "user-1")

        with pytest.raises(InsufficientBalance) as exc_info:
            await wallet_service.debit("user-1", 3, "Application for Logo design")
        await session.commit()

        assert exc_info.value.balance == 2
        assert exc_info.value.required == 3
        assert "fund your wallet" in exc_info.value.message
        wallet = await wallet_service.get_or_create_wallet("user-1")
        assert wallet.balance == 2
        assert await _transaction_count(session, "user-1") == before

    @pytest.mark.asyncio
    async def test_debit_without_wallet_is_insufficient(self, wallet_service):
        with pytest.raises(InsufficientBalance) as exc_info:
            await wallet_service.debit("nobody", 1, "Spend")
        assert exc_info.value.balance == 0

    @pytest.mark.asyncio
    async def test_balance_never_negative_over_a_sequence(self, wallet_service, session):
        expected = 0
        steps = [("credit", 5), ("debit", 3), ("debit", 3), ("credit", 1), ("debit", 3), ("debit", 1)]
        for operation, amount in steps:
            if operation == "credit":
                wallet = await wallet_service.credit("user-1", amount, "Top up")
                expected += amount
            else:
                try:
                    wallet = await wallet_service.debit("user-1", amount, "Spend")
                    expected -= amount
                except InsufficientBalance:
                    wallet = await wallet_service.get_or_create_wallet("user-1")
            assert wallet.balance >= 0
            assert wallet.balance == expected
        await session.commit()
        assert expected == 0

    @pytest.mark.asyncio
    async def test_transactions_listed_newest_first(self, wallet_service, session):
        await wallet_service.credit("user-1", 10, "first")
        await wallet_service.debit("user-1", 1, "second")
        await wallet_service.debit("user-1", 2, "third")
        await session.commit()

        transactions = await wallet_service.list_transactions("user-1")
        assert [tx.description for tx in transactions] == ["third", "second", "first"]
        assert [tx.description for tx in await wallet_service.list_transactions("user-1", limit=1, offset=1)] == [
            "second"
        ]


class TestConcurrentDebits:
    @pytest.mark.asyncio
    async def test_only_one_of_two_concurrent_debits_succeeds(self, session, session_factory, settings, ledger_feed):
        await seed_wallet(session, "user-1", 3)

        async def attempt() -> bool:
            async with session_factory() as own_session:
                service = WalletService.with_session(own_session, settings, ledger_feed)
                try:
                    await service.debit("user-1", 3, "Application for Logo design")
                except InsufficientBalance:
                    await own_session.rollback()
                    return False
                await own_session.commit()
                return True

        outcomes = await asyncio.gather(attempt(), attempt())

        assert sorted(outcomes) == [False, True]
        async with session_factory() as check:
            wallet = await check.get(models.Wallet, "user-1")
            assert wallet.balance == 0
            assert await _transaction_count(check, "user-1") == 1


class TestApplications:
    @pytest.mark.asyncio
    async def test_application_spends_configured_cost(self, wallet_service, session):
        await seed_wallet(session, "freelancer", 10)
        await seed_job(session, "job-1", "employer")

        result = await wallet_service.spend_for_application(
            "freelancer", "job-1", cover_letter="I can do this", bid_amount=40000
        )
        await session.commit()

        assert result.wallet.balance == 7
        assert result.application.tokens_spent == 3
        assert result.application.bid_amount == 40000
        transactions = await wallet_service.list_transactions("freelancer")
        assert transactions[0].description == "Application for Job job-1"
        assert transactions[0].tokens_out == 3

    @pytest.mark.asyncio
    async def test_unknown_job(self, wallet_service, session):
        await seed_wallet(session, "freelancer", 10)
        with pytest.raises(JobNotFound):
            await wallet_service.spend_for_application("freelancer", "missing")

    @pytest.mark.asyncio
    async def test_second_application_is_rejected_without_charge(self, wallet_service, session):
        await seed_wallet(session, "freelancer", 10)
        await seed_job(session, "job-1", "employer")
        await wallet_service.spend_for_application("freelancer", "job-1")
        await session.commit()

        with pytest.raises(AlreadyApplied):
            await wallet_service.spend_for_application("freelancer", "job-1")
        wallet = await wallet_service.get_or_create_wallet("freelancer")
        assert wallet.balance == 7

    @pytest.mark.asyncio
    async def test_insufficient_balance_records_no_application(self, wallet_service, session):
        await seed_wallet(session, "freelancer", 2)
        await seed_job(session, "job-1", "employer")

        with pytest.raises(InsufficientBalance):
            await wallet_service.spend_for_application("freelancer", "job-1")
        await session.rollback()

        result = await session.execute(select(func.count()).select_from(models.JobApplication))
        assert result.scalar_one() == 0
