"""Payment provider endpoints: checkout and the signed confirmation webhook."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from gigledger.core.config import Settings, get_settings
from gigledger.core.security import get_current_user
from gigledger.interfaces.http.deps import get_db_session, get_payment_service, get_paystack_client
from gigledger.interfaces.http.errors import wallet_http_error
from gigledger.modules.payments.exceptions import PaymentProviderError, SignatureMismatch
from gigledger.modules.payments.provider import PaystackClient
from gigledger.modules.payments.service import PaymentConfirmationService
from gigledger.modules.wallets.exceptions import StoreUnavailable
from gigledger.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    ErrorResponse,
    PaymentWebhookResponse,
    TokenData,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/webhook", response_model=PaymentWebhookResponse, summary="Payment confirmation callback")
async def payment_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
    payment_service: PaymentConfirmationService = Depends(get_payment_service),
) -> PaymentWebhookResponse:
    # the signature covers the exact bytes sent, so read before any parsing
    raw_body = await request.body()
    signature = request.headers.get(settings.payments.signature_header)
    try:
        result = await payment_service.handle_webhook(raw_body, signature)
    except SignatureMismatch as exc:
        detail = ErrorResponse(code="invalid_signature", detail="Invalid webhook signature")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail.model_dump()) from exc
    except StoreUnavailable as exc:
        await db.rollback()
        raise wallet_http_error(exc) from exc
    await db.commit()
    return PaymentWebhookResponse(
        status=result.outcome.value,
        ledger_applied=result.ledger_applied,
        reference=result.reference,
    )


@router.post("/checkout", response_model=CheckoutResponse, summary="Start a token purchase")
async def start_checkout(
    payload: CheckoutRequest,
    user: TokenData = Depends(get_current_user),
    client: PaystackClient = Depends(get_paystack_client),
) -> CheckoutResponse:
    try:
        checkout = await client.initialize_transaction(
            email=payload.email,
            amount=payload.amount,
            user_id=user.user_id,
        )
    except PaymentProviderError as exc:
        detail = ErrorResponse(code="payment_provider_error", detail=str(exc))
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail.model_dump()) from exc
    return CheckoutResponse(
        authorization_url=checkout.authorization_url,
        access_code=checkout.access_code,
        reference=checkout.reference,
    )
