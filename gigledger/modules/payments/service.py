"""Payment confirmation: signed webhook in, wallet credit out."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import AsyncContextManager, Callable, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gigledger.core.config import PaymentSettings, Settings, get_settings
from gigledger.infrastructure.database.repositories import SqlPaymentReceiptRepository
from gigledger.infrastructure.database.types import utcnow
from gigledger.modules.wallets.entitlements import tokens_for_payment
from gigledger.modules.wallets.exceptions import DuplicatePaymentReference, WalletError
from gigledger.modules.wallets.service import WalletService
from gigledger.realtime.feed import LedgerFeed
from gigledger.schemas import PaymentData, PaymentWebhookPayload

from .exceptions import MalformedPaymentEvent, SignatureMismatch
from .models import CHARGE_SUCCESS, PaymentEvent, PaymentReceipt, ReceiptStatus, WebhookOutcome, WebhookResult
from .repository import PaymentReceiptRepository
from .signature import verify_signature

logger = logging.getLogger(__name__)


def payment_reference(data: PaymentData, raw_body: bytes) -> str:
    """Dedupe key for a charge: the provider reference, else its id, else a body digest."""
    if data.reference:
        return data.reference
    if data.id not in (None, ""):
        return f"id:{data.id}"
    return "sha256:" + hashlib.sha256(raw_body).hexdigest()


def parse_payment_event(raw_body: bytes) -> PaymentEvent:
    try:
        payload = PaymentWebhookPayload.model_validate_json(raw_body)
    except ValidationError as exc:
        raise MalformedPaymentEvent(str(exc)) from exc
    metadata = payload.data.metadata
    return PaymentEvent(
        event=payload.event,
        reference=payment_reference(payload.data, raw_body),
        amount_minor=payload.data.amount,
        user_id=metadata.user_id if metadata else None,
    )


@dataclass(slots=True)
class PaymentConfirmationService:
    """Verifies provider callbacks and credits the purchased tokens.

    Accepting a callback and applying it to the ledger are separate steps:
    every verified charge gets a receipt keyed by its reference, the credit
    is attempted inside a savepoint, and a receipt whose credit keeps
    failing is left ``failed`` for ``retry_failed``.
    """

    receipts: PaymentReceiptRepository
    wallets: WalletService
    settings: PaymentSettings
    savepoint: Callable[[], AsyncContextManager]

    @classmethod
    def with_session(
        cls,
        session: AsyncSession,
        settings: Settings | None = None,
        feed: LedgerFeed | None = None,
    ) -> "PaymentConfirmationService":
        settings = settings or get_settings()
        return cls(
            receipts=SqlPaymentReceiptRepository(session),
            wallets=WalletService.with_session(session, settings, feed),
            settings=settings.payments,
            savepoint=session.begin_nested,
        )

    async def handle_webhook(self, raw_body: bytes, signature: Optional[str]) -> WebhookResult:
        if not verify_signature(self.settings.secret_key, raw_body, signature):
            logger.warning("Rejected payment webhook with invalid signature")
            raise SignatureMismatch("Invalid webhook signature")

        try:
            event = parse_payment_event(raw_body)
        except MalformedPaymentEvent as exc:
            logger.warning("Ignoring malformed payment webhook: %s", exc)
            return WebhookResult(outcome=WebhookOutcome.IGNORED)

        if event.event != CHARGE_SUCCESS:
            logger.info("Ignoring payment event %s for %s", event.event, event.reference)
            return WebhookResult(outcome=WebhookOutcome.IGNORED, reference=event.reference)

        tokens = tokens_for_payment(event.amount_minor, self.settings.price_per_token)
        receipt = await self.receipts.create(
            reference=event.reference,
            event=event.event,
            user_id=event.user_id,
            amount_minor=event.amount_minor,
            tokens=tokens,
        )
        if receipt is None:
            existing = await self.receipts.get_by_reference(event.reference)
            if existing is not None and existing.status is ReceiptStatus.FAILED:
                logger.info("Redelivery of failed payment %s, applying again", event.reference)
                return await self._apply(existing)
            logger.info("Payment %s already processed", event.reference)
            return WebhookResult(outcome=WebhookOutcome.DUPLICATE, reference=event.reference)

        if not event.user_id:
            logger.warning("Payment %s carries no userId metadata", event.reference)
            await self.receipts.mark_ignored(event.reference, reason="missing userId metadata")
            return WebhookResult(outcome=WebhookOutcome.IGNORED, reference=event.reference)
        if tokens <= 0:
            logger.warning("Payment %s of %d is worth no tokens", event.reference, event.amount_minor)
            await self.receipts.mark_ignored(event.reference, reason="amount below the price of one token")
            return WebhookResult(outcome=WebhookOutcome.IGNORED, reference=event.reference)

        return await self._apply(receipt)

    async def retry_failed(self, limit: int = 50) -> list[WebhookResult]:
        results = []
        for receipt in await self.receipts.list_failed(limit):
            results.append(await self._apply(receipt))
        return results

    async def _apply(self, receipt: PaymentReceipt) -> WebhookResult:
        attempts = receipt.attempts
        last_error = "no attempt made"
        for _ in range(self.settings.max_apply_attempts):
            attempts += 1
            try:
                async with self.savepoint():
                    wallet = await self.wallets.fund_from_payment(
                        receipt.user_id, receipt.tokens, receipt.reference
                    )
            except DuplicatePaymentReference:
                await self.receipts.mark_applied(receipt.reference, attempts=attempts, applied_at=utcnow())
                return WebhookResult(outcome=WebhookOutcome.DUPLICATE, reference=receipt.reference)
            except (WalletError, SQLAlchemyError) as exc:
                last_error = f"{type(exc).__name__}: {exc}"
                logger.warning(
                    "Crediting payment %s failed (attempt %d): %s", receipt.reference, attempts, last_error
                )
                continue
            await self.receipts.mark_applied(receipt.reference, attempts=attempts, applied_at=utcnow())
            logger.info(
                "Applied payment %s: %d tokens to %s", receipt.reference, receipt.tokens, receipt.user_id
            )
            return WebhookResult(
                outcome=WebhookOutcome.APPLIED,
                reference=receipt.reference,
                tokens=receipt.tokens,
                balance=wallet.balance,
            )

        await self.receipts.mark_failed(receipt.reference, attempts=attempts, error=last_error)
        logger.error(
            "Payment %s for user %s left unapplied after %d attempts, needs reconciliation: %s",
            receipt.reference,
            receipt.user_id,
            attempts,
            last_error,
        )
        return WebhookResult(outcome=WebhookOutcome.FAILED, reference=receipt.reference, tokens=receipt.tokens)
