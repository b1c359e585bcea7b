"""
Tests for paid promotions of jobs and profiles.
"""

from datetime import timedelta

import pytest

from gigledger.db import models
from gigledger.infrastructure.database.repositories import SqlPromotionRepository
from gigledger.modules.wallets.exceptions import (
    AlreadyPromoted,
    EntityNotFound,
    InsufficientBalance,
    PromotionConflict,
    UnknownPromotionPlan,
)
from gigledger.modules.wallets.models import EntityKind, PromotionTag

from conftest import NOW, seed_job, seed_profile, seed_wallet


@pytest.fixture()
def service(wallet_service):
    wallet_service.clock = lambda: NOW
    return wallet_service


async def _balance(session, user_id: str) -> int:
    wallet = await session.get(models.Wallet, user_id, populate_existing=True)
    return wallet.balance


class TestProfilePromotion:
    @pytest.mark.asyncio
    async def test_silver_on_unpromoted_profile(self, service, session):
        await seed_wallet(session, "user-1", 10)
        await seed_profile(session, "user-1")

        result = await service.promote_entity("user-1", "profile", "user-1", "silver")
        await session.commit()

        assert result.wallet.balance == 7
        assert result.extended is False
        profile = await session.get(models.Profile, "user-1", populate_existing=True)
        assert profile.promotion_tag == "silver"
        assert profile.promotion_expires_at == NOW + timedelta(days=3)

    @pytest.mark.asyncio
    async def test_active_profile_is_extended_from_existing_expiry(self, service, session):
        current_expiry = NOW + timedelta(days=2)
        await seed_wallet(session, "user-1", 10)
        await seed_profile(session, "user-1", tag="silver", expires_at=current_expiry)

        result = await service.promote_entity("user-1", EntityKind.PROFILE, "user-1", "gold")
        await session.commit()

        assert result.extended is True
        assert result.entity.promotion_expires_at == current_expiry + timedelta(days=10)
        assert await _balance(session, "user-1") == 5
        transactions = await service.list_transactions("user-1")
        assert [tx.tokens_out for tx in transactions] == [5]

    @pytest.mark.asyncio
    async def test_quote_exposes_extension(self, service, session):
        await seed_wallet(session, "user-1", 4)
        await seed_profile(session, "user-1", tag="gold", expires_at=NOW + timedelta(days=1))

        quote = await service.quote_promotion("user-1", "profile", "user-1", "premium")

        assert quote.would_extend is True
        assert quote.requires_confirmation is True
        assert quote.allowed is True
        assert quote.affordable is False
        assert quote.new_expires_at == NOW + timedelta(days=31)
        assert await _balance(session, "user-1") == 4

    @pytest.mark.asyncio
    async def test_concurrent_change_is_reported_and_rolled_back(self, service, session):
        class StaleReads(SqlPromotionRepository):
            async def get_entity(self, kind, entity_id):
                entity = await super().get_entity(kind, entity_id)
                entity.promotion_tag = PromotionTag.NONE
                entity.promotion_expires_at = None
                return entity

        await seed_wallet(session, "user-1", 10)
        await seed_profile(session, "user-1", tag="gold", expires_at=NOW + timedelta(days=2))
        service.promotions = StaleReads(session)

        with pytest.raises(PromotionConflict):
            await service.promote_entity("user-1", "profile", "user-1", "silver")
        await session.rollback()

        assert await _balance(session, "user-1") == 10
        profile = await session.get(models.Profile, "user-1", populate_existing=True)
        assert profile.promotion_tag == "gold"


class TestJobPromotion:
    @pytest.mark.asyncio
    async def test_active_job_is_rejected_without_charge(self, service, session):
        expiry = NOW + timedelta(days=5)
        await seed_wallet(session, "employer", 20)
        await seed_job(session, "job-1", "employer", tag="gold", expires_at=expiry)

        with pytest.raises(AlreadyPromoted) as exc_info:
            await service.promote_entity("employer", "job", "job-1", "premium")
        await session.commit()

        assert exc_info.value.expires_at == expiry
        assert await _balance(session, "employer") == 20
        job = await session.get(models.Job, "job-1", populate_existing=True)
        assert job.promotion_tag == "gold"
        assert job.promotion_expires_at == expiry

    @pytest.mark.asyncio
    async def test_lapsed_job_promotion_restarts_from_now(self, service, session):
        await seed_wallet(session, "employer", 20)
        await seed_job(session, "job-1", "employer", tag="premium", expires_at=NOW - timedelta(days=1))

        result = await service.promote_entity("employer", "job", "job-1", "gold")
        await session.commit()

        assert result.extended is False
        assert result.entity.promotion_tag is PromotionTag.GOLD
        assert result.entity.promotion_expires_at == NOW + timedelta(days=10)
        assert await _balance(session, "employer") == 15

    @pytest.mark.asyncio
    async def test_quote_for_active_job_is_not_allowed(self, service, session):
        await seed_wallet(session, "employer", 20)
        await seed_job(session, "job-1", "employer", tag="silver", expires_at=NOW + timedelta(hours=3))

        quote = await service.quote_promotion("employer", "job", "job-1", "silver")

        assert quote.allowed is False
        assert quote.would_extend is False
        assert quote.new_expires_at is None

    @pytest.mark.asyncio
    async def test_insufficient_balance_leaves_job_untouched(self, service, session):
        await seed_wallet(session, "employer", 4)
        await seed_job(session, "job-1", "employer")

        with pytest.raises(InsufficientBalance):
            await service.promote_entity("employer", "job", "job-1", "gold")
        await session.rollback()

        job = await session.get(models.Job, "job-1", populate_existing=True)
        assert job.promotion_tag == "none"
        assert job.promotion_expires_at is None
        assert await _balance(session, "employer") == 4


class TestPromotionGuards:
    @pytest.mark.asyncio
    async def test_only_the_owner_can_promote(self, service, session):
        await seed_wallet(session, "someone-else", 20)
        await seed_job(session, "job-1", "employer")
        with pytest.raises(EntityNotFound):
            await service.promote_entity("someone-else", "job", "job-1", "silver")

    @pytest.mark.asyncio
    async def test_unknown_plan(self, service, session):
        await seed_profile(session, "user-1")
        with pytest.raises(UnknownPromotionPlan):
            await service.promote_entity("user-1", "profile", "user-1", "platinum")

    @pytest.mark.asyncio
    async def test_plan_terms_come_from_configuration(self, service):
        terms = service.plan("Premium")
        assert (terms.name, terms.cost, terms.duration_days) == ("premium", 10, 30)
