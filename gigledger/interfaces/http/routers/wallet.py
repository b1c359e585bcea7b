"""Wallet endpoints: balance, history and promotion purchases."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from gigledger.core.config import Settings, get_settings
from gigledger.core.security import get_current_user
from gigledger.interfaces.http.deps import get_db_session, get_wallet_service
from gigledger.interfaces.http.errors import wallet_http_error
from gigledger.modules.wallets.exceptions import WalletError
from gigledger.modules.wallets.service import WalletService
from gigledger.schemas import (
    PromotionPlanListResponse,
    PromotionPlanResponse,
    PromotionQuoteResponse,
    PromotionRequest,
    PromotionResponse,
    TokenData,
    WalletSnapshotResponse,
    WalletTransactionListResponse,
    WalletTransactionResponse,
)

router = APIRouter()


@router.get("", response_model=WalletSnapshotResponse, summary="Current token balance")
async def get_wallet_snapshot(
    user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> WalletSnapshotResponse:
    try:
        snapshot = await wallet_service.get_or_create_wallet(user.user_id)
    except WalletError as exc:
        raise wallet_http_error(exc) from exc
    await db.commit()
    return WalletSnapshotResponse.model_validate(snapshot)


@router.get("/transactions", response_model=WalletTransactionListResponse, summary="Token transaction history")
async def list_wallet_transactions(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: TokenData = Depends(get_current_user),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> WalletTransactionListResponse:
    try:
        records = await wallet_service.list_transactions(user.user_id, limit, offset)
    except WalletError as exc:
        raise wallet_http_error(exc) from exc
    return WalletTransactionListResponse(
        transactions=[WalletTransactionResponse.model_validate(record) for record in records]
    )


@router.get("/plans", response_model=PromotionPlanListResponse, summary="Token prices")
async def list_plans(settings: Settings = Depends(get_settings)) -> PromotionPlanListResponse:
    return PromotionPlanListResponse(
        application_cost=settings.pricing.application_cost,
        plans=[
            PromotionPlanResponse(name=name, cost=plan.cost, duration_days=plan.duration_days)
            for name, plan in settings.pricing.plans.items()
        ],
    )


@router.post("/promotions/quote", response_model=PromotionQuoteResponse, summary="Preview a promotion purchase")
async def quote_promotion(
    payload: PromotionRequest,
    user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> PromotionQuoteResponse:
    try:
        quote = await wallet_service.quote_promotion(
            user.user_id, payload.entity_kind, payload.entity_id, payload.plan
        )
    except WalletError as exc:
        raise wallet_http_error(exc) from exc
    await db.commit()
    return PromotionQuoteResponse.model_validate(quote)


@router.post("/promotions", response_model=PromotionResponse, summary="Buy a promotion with tokens")
async def promote_entity(
    payload: PromotionRequest,
    user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> PromotionResponse:
    try:
        result = await wallet_service.promote_entity(
            user.user_id, payload.entity_kind, payload.entity_id, payload.plan
        )
    except WalletError as exc:
        await db.rollback()
        raise wallet_http_error(exc) from exc
    await db.commit()
    return PromotionResponse(
        entity_id=result.entity.id,
        entity_kind=result.entity.kind,
        promotion_tag=result.entity.promotion_tag,
        promotion_expires_at=result.entity.promotion_expires_at,
        extended=result.extended,
        tokens_spent=result.plan.cost,
        balance=result.wallet.balance,
    )
