"""Wallet domain service"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from gigledger.core.config import PricingSettings, Settings, get_settings
from gigledger.infrastructure.database.repositories import (
    SqlApplicationRepository,
    SqlPromotionRepository,
    SqlWalletRepository,
)
from gigledger.infrastructure.database.types import utcnow
from gigledger.realtime.capture import SessionChangeRecorder
from gigledger.realtime.events import ChangeAction, LedgerEvent, TransactionChanged, WalletChanged
from gigledger.realtime.feed import LedgerFeed, feed as default_feed

from .entitlements import can_afford, compute_new_expiry, effective_promotion_tag, is_promotion_active
from .exceptions import (
    AlreadyApplied,
    AlreadyPromoted,
    DuplicatePaymentReference,
    EntityNotFound,
    InsufficientBalance,
    InvalidAmount,
    JobNotFound,
    PromotionConflict,
    StoreUnavailable,
    UnknownPromotionPlan,
)
from .models import (
    ApplicationResult,
    EntityKind,
    PlanTerms,
    PromotableEntity,
    PromotionQuote,
    PromotionResult,
    PromotionTag,
    TransactionRecord,
    WalletSnapshot,
)
from .repository import ApplicationRepository, PromotionRepository, WalletRepository

logger = logging.getLogger(__name__)

PAYMENT_FUNDING_DESCRIPTION = "Wallet funding via Paystack"


class ChangeRecorder(Protocol):
    def record(self, ledger_event: LedgerEvent) -> None:
        ...


@dataclass(slots=True)
class WalletService:
    """Balance mutations, token spends and promotion purchases.

    Every mutating call leaves its writes in the caller's unit of work: the
    balance update and the transaction row commit or roll back together.
    When a call raises after a successful debit (a lost promotion race, a
    duplicate application) the caller must roll back, which ``get_session``
    does for HTTP requests.
    """

    wallets: WalletRepository
    promotions: PromotionRepository
    applications: ApplicationRepository
    pricing: PricingSettings = field(default_factory=PricingSettings)
    recorder: Optional[ChangeRecorder] = None
    clock: Callable[[], datetime] = utcnow

    @classmethod
    def with_session(
        cls,
        session: AsyncSession,
        settings: Settings | None = None,
        feed: LedgerFeed | None = None,
    ) -> "WalletService":
        settings = settings or get_settings()
        return cls(
            wallets=SqlWalletRepository(session),
            promotions=SqlPromotionRepository(session),
            applications=SqlApplicationRepository(session),
            pricing=settings.pricing,
            recorder=SessionChangeRecorder(session, feed or default_feed),
        )

    async def get_or_create_wallet(self, user_id: str) -> WalletSnapshot:
        wallet = await self.wallets.get_wallet(user_id)
        if wallet is None:
            wallet = await self.wallets.create_wallet(user_id)
            logger.info("Created wallet for user %s", user_id)
        return wallet

    async def list_transactions(self, user_id: str, limit: int = 50, offset: int = 0) -> list[TransactionRecord]:
        return list(await self.wallets.list_transactions(user_id, limit, offset))

    async def credit(
        self,
        user_id: str,
        amount: int,
        description: str,
        reference: str | None = None,
    ) -> WalletSnapshot:
        _check_amount(amount)
        wallet = await self.wallets.apply_credit(user_id, amount, description)
        if wallet is None:
            await self.wallets.create_wallet(user_id)
            wallet = await self.wallets.apply_credit(user_id, amount, description)
            if wallet is None:
                raise StoreUnavailable()
        tx = await self.wallets.add_transaction(
            user_id=user_id,
            description=description,
            tokens_in=amount,
            tokens_out=0,
            reference=reference,
        )
        self._record(wallet, tx)
        logger.info("Credited %d tokens to %s (%s), balance %d", amount, user_id, description, wallet.balance)
        return wallet

    async def debit(self, user_id: str, amount: int, description: str) -> WalletSnapshot:
        _check_amount(amount)
        # one conditional UPDATE: concurrent debits cannot both pass the check
        wallet = await self.wallets.apply_debit(user_id, amount, description)
        if wallet is None:
            current = await self.wallets.get_wallet(user_id)
            balance = current.balance if current else 0
            logger.info("Debit of %d tokens refused for %s, balance %d", amount, user_id, balance)
            raise InsufficientBalance(balance=balance, required=amount)
        tx = await self.wallets.add_transaction(
            user_id=user_id,
            description=description,
            tokens_in=0,
            tokens_out=amount,
        )
        self._record(wallet, tx)
        logger.info("Debited %d tokens from %s (%s), balance %d", amount, user_id, description, wallet.balance)
        return wallet

    async def spend_for_application(
        self,
        user_id: str,
        job_id: str,
        cover_letter: str | None = None,
        bid_amount: int | None = None,
    ) -> ApplicationResult:
        job = await self.applications.get_job(job_id)
        if job is None:
            raise JobNotFound(job_id)
        if await self.applications.find_application(job_id, user_id) is not None:
            raise AlreadyApplied()

        cost = self.pricing.application_cost
        wallet = await self.debit(user_id, cost, f"Application for {job.title}")
        application = await self.applications.add_application(
            job_id=job_id,
            applicant_id=user_id,
            cover_letter=cover_letter,
            bid_amount=bid_amount,
            tokens_spent=cost,
        )
        return ApplicationResult(application=application, wallet=wallet)

    def plan(self, name: str) -> PlanTerms:
        key = name.lower()
        terms = self.pricing.plans.get(key)
        if terms is None or key not in _PLAN_TAGS:
            raise UnknownPromotionPlan(name)
        return PlanTerms(name=key, cost=terms.cost, duration_days=terms.duration_days)

    async def quote_promotion(
        self,
        user_id: str,
        entity_kind: EntityKind | str,
        entity_id: str,
        plan_name: str,
    ) -> PromotionQuote:
        kind = EntityKind(entity_kind)
        terms = self.plan(plan_name)
        entity = await self._owned_entity(user_id, kind, entity_id)
        wallet = await self.get_or_create_wallet(user_id)
        now = self.clock()

        active = is_promotion_active(entity.promotion_tag, entity.promotion_expires_at, now)
        if kind is EntityKind.JOB:
            allowed = not active
            would_extend = False
            new_expiry = compute_new_expiry(None, terms.duration_days, now) if allowed else None
        else:
            allowed = True
            would_extend = active
            new_expiry = compute_new_expiry(
                entity.promotion_expires_at if active else None, terms.duration_days, now
            )

        return PromotionQuote(
            entity_id=entity.id,
            entity_kind=kind,
            plan=terms,
            balance=wallet.balance,
            active=active,
            current_tag=effective_promotion_tag(entity.promotion_tag, entity.promotion_expires_at, now),
            current_expires_at=entity.promotion_expires_at if active else None,
            would_extend=would_extend,
            allowed=allowed,
            affordable=can_afford(wallet.balance, terms.cost),
            new_expires_at=new_expiry,
        )

    async def promote_entity(
        self,
        user_id: str,
        entity_kind: EntityKind | str,
        entity_id: str,
        plan_name: str,
    ) -> PromotionResult:
        kind = EntityKind(entity_kind)
        terms = self.plan(plan_name)
        entity = await self._owned_entity(user_id, kind, entity_id)
        now = self.clock()

        active = is_promotion_active(entity.promotion_tag, entity.promotion_expires_at, now)
        if kind is EntityKind.JOB and active:
            raise AlreadyPromoted(entity.promotion_expires_at)
        new_expiry = compute_new_expiry(
            entity.promotion_expires_at if active else None, terms.duration_days, now
        )

        # the debit must land before the entity is tagged
        wallet = await self.debit(user_id, terms.cost, f"{kind.value.capitalize()} promotion, {terms.name}")

        written = await self.promotions.write_promotion(
            kind,
            entity.id,
            tag=PromotionTag(terms.name),
            expires_at=new_expiry,
            expected_expiry=entity.promotion_expires_at,
        )
        if not written:
            logger.warning("Promotion of %s %s lost a concurrent update", kind.value, entity.id)
            if kind is EntityKind.JOB:
                fresh = await self.promotions.get_entity(kind, entity.id)
                raise AlreadyPromoted(fresh.promotion_expires_at if fresh else None)
            raise PromotionConflict()

        logger.info(
            "Promoted %s %s with %s until %s (extended=%s)",
            kind.value,
            entity.id,
            terms.name,
            new_expiry.isoformat(),
            active,
        )
        promoted = PromotableEntity(
            id=entity.id,
            kind=kind,
            owner_id=entity.owner_id,
            promotion_tag=PromotionTag(terms.name),
            promotion_expires_at=new_expiry,
        )
        return PromotionResult(entity=promoted, wallet=wallet, plan=terms, extended=active)

    async def fund_from_payment(self, user_id: str, tokens: int, payment_reference: str) -> WalletSnapshot:
        if await self.wallets.get_transaction_by_reference(payment_reference) is not None:
            raise DuplicatePaymentReference(payment_reference)
        return await self.credit(user_id, tokens, PAYMENT_FUNDING_DESCRIPTION, reference=payment_reference)

    async def _owned_entity(self, user_id: str, kind: EntityKind, entity_id: str) -> PromotableEntity:
        entity = await self.promotions.get_entity(kind, entity_id)
        if entity is None or entity.owner_id != user_id:
            raise EntityNotFound(kind.value, entity_id)
        return entity

    def _record(self, wallet: WalletSnapshot, tx: TransactionRecord) -> None:
        if self.recorder is None:
            return
        self.recorder.record(
            WalletChanged(
                user_id=wallet.user_id,
                balance=wallet.balance,
                last_action=wallet.last_action,
                updated_at=wallet.updated_at,
            )
        )
        self.recorder.record(TransactionChanged(user_id=tx.user_id, action=ChangeAction.INSERT, transaction=tx))


_PLAN_TAGS = {tag.value for tag in PromotionTag if tag is not PromotionTag.NONE}


def _check_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmount(amount)
