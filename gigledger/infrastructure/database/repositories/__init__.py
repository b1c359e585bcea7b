"""SQLAlchemy-backed repository implementations."""

from .application_repository import SqlApplicationRepository
from .payment_repository import SqlPaymentReceiptRepository
from .promotion_repository import SqlPromotionRepository
from .wallet_repository import SqlWalletRepository

__all__ = [
    "SqlApplicationRepository",
    "SqlPaymentReceiptRepository",
    "SqlPromotionRepository",
    "SqlWalletRepository",
]
