from fastapi import APIRouter

from gigledger.interfaces.http.routers import jobs, payments, realtime, wallet


def create_api_router(prefix: str = "") -> APIRouter:
    router = APIRouter(prefix=prefix)
    router.include_router(wallet.router, prefix="/wallet", tags=["wallet"])
    router.include_router(jobs.router, prefix="/jobs", tags=["jobs"])
    router.include_router(payments.router, prefix="/payments", tags=["payments"])
    return router


__all__ = [
    "create_api_router",
    "realtime",
]
