"""Job application endpoint; applying costs tokens."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from gigledger.core.security import get_current_user
from gigledger.interfaces.http.deps import get_db_session, get_wallet_service
from gigledger.interfaces.http.errors import wallet_http_error
from gigledger.modules.wallets.exceptions import WalletError
from gigledger.modules.wallets.service import WalletService
from gigledger.schemas import JobApplicationRequest, JobApplicationResponse, TokenData

router = APIRouter()


@router.post(
    "/{job_id}/applications",
    response_model=JobApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Apply for a job",
)
async def apply_for_job(
    payload: JobApplicationRequest,
    job_id: str = Path(..., min_length=1, max_length=36),
    user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> JobApplicationResponse:
    try:
        result = await wallet_service.spend_for_application(
            user.user_id,
            job_id,
            cover_letter=payload.cover_letter,
            bid_amount=payload.bid_amount,
        )
    except WalletError as exc:
        await db.rollback()
        raise wallet_http_error(exc) from exc
    await db.commit()
    return JobApplicationResponse(
        id=result.application.id,
        job_id=result.application.job_id,
        applicant_id=result.application.applicant_id,
        tokens_spent=result.application.tokens_spent,
        balance=result.wallet.balance,
        created_at=result.application.created_at,
    )
