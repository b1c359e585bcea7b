"""Translate domain errors into HTTP responses."""

from fastapi import HTTPException, status

from gigledger.modules.wallets.exceptions import (
    AlreadyApplied,
    AlreadyPromoted,
    DuplicatePaymentReference,
    EntityNotFound,
    InsufficientBalance,
    InvalidAmount,
    PromotionConflict,
    StoreUnavailable,
    UnknownPromotionPlan,
    WalletError,
)
from gigledger.schemas import ErrorResponse

_STATUS_CODES: list[tuple[type[WalletError], int, str]] = [
    (InsufficientBalance, status.HTTP_402_PAYMENT_REQUIRED, "insufficient_balance"),
    (AlreadyPromoted, status.HTTP_409_CONFLICT, "already_promoted"),
    (PromotionConflict, status.HTTP_409_CONFLICT, "promotion_conflict"),
    (AlreadyApplied, status.HTTP_409_CONFLICT, "already_applied"),
    (DuplicatePaymentReference, status.HTTP_409_CONFLICT, "duplicate_payment"),
    (EntityNotFound, status.HTTP_404_NOT_FOUND, "not_found"),
    (InvalidAmount, status.HTTP_422_UNPROCESSABLE_ENTITY, "invalid_amount"),
    (UnknownPromotionPlan, status.HTTP_422_UNPROCESSABLE_ENTITY, "unknown_plan"),
    (StoreUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE, "store_unavailable"),
]


def wallet_http_error(exc: WalletError) -> HTTPException:
    status_code, code = status.HTTP_400_BAD_REQUEST, "wallet_error"
    for error_type, mapped_status, mapped_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            status_code, code = mapped_status, mapped_code
            break

    extra = {}
    if isinstance(exc, InsufficientBalance):
        extra = {"balance": exc.balance, "required": exc.required, "action": "fund_wallet"}
    elif isinstance(exc, AlreadyPromoted):
        extra = {"expires_at": exc.expires_at.isoformat() if exc.expires_at else None}

    detail = ErrorResponse(code=code, detail=exc.message, extra=extra)
    return HTTPException(status_code=status_code, detail=detail.model_dump())
