"""Service dependency providers."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gigledger.core.config import Settings, get_settings
from gigledger.modules.payments.provider import PaystackClient
from gigledger.modules.payments.service import PaymentConfirmationService
from gigledger.modules.wallets.service import WalletService

from .database import get_db_session


def get_wallet_service(
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> WalletService:
    return WalletService.with_session(db, settings)


def get_payment_service(
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
) -> PaymentConfirmationService:
    return PaymentConfirmationService.with_session(db, settings)


def get_paystack_client(settings: Settings = Depends(get_settings)) -> PaystackClient:
    return PaystackClient(settings.payments)


__all__ = [
    "get_payment_service",
    "get_paystack_client",
    "get_wallet_service",
]
