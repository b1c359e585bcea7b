"""Reusable FastAPI dependencies."""

from .database import get_db_session, get_db_session_factory
from .services import get_payment_service, get_paystack_client, get_wallet_service

__all__ = [
    "get_db_session",
    "get_db_session_factory",
    "get_payment_service",
    "get_paystack_client",
    "get_wallet_service",
]
