"""Operational commands: schema bootstrap, payment reconciliation and the API server."""
import argparse
import asyncio
import logging

from gigledger.core.config import get_settings
from gigledger.core.logging import configure_logging
from gigledger.infrastructure.database.session import dispose_engine, get_session, init_db
from gigledger.modules.payments.models import WebhookOutcome
from gigledger.modules.payments.service import PaymentConfirmationService

logger = logging.getLogger("gigledger.cli")


async def create_schema() -> None:
    await init_db()
    await dispose_engine()
    print("Database schema ready")


async def retry_payments(limit: int) -> int:
    """Re-apply receipts left ``failed``; returns how many are still failing."""
    await init_db()
    still_failing = 0
    async for db in get_session():
        service = PaymentConfirmationService.with_session(db)
        results = await service.retry_failed(limit)
        await db.commit()
        for result in results:
            print(f"{result.reference}: {result.outcome.value}")
            if result.outcome is WebhookOutcome.FAILED:
                still_failing += 1
        if not results:
            print("No failed payments to retry")
    await dispose_engine()
    return still_failing


def serve() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run("gigledger.main:app", host=settings.host, port=settings.port, reload=settings.server.reload)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gigledger", description="Gigzz token ledger tools")
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("init-db", help="create missing tables")
    retry = commands.add_parser("retry-payments", help="re-apply payments that failed to credit")
    retry.add_argument("--limit", type=int, default=50)
    commands.add_parser("serve", help="run the HTTP API")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(get_settings())

    if args.command == "init-db":
        asyncio.run(create_schema())
        return 0
    if args.command == "retry-payments":
        still_failing = asyncio.run(retry_payments(args.limit))
        if still_failing:
            logger.error("%d payment(s) still need reconciliation", still_failing)
            return 1
        return 0
    serve()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
