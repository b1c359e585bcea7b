"""Shared plumbing for the SQLAlchemy repositories."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from gigledger.modules.wallets.exceptions import StoreUnavailable

logger = logging.getLogger(__name__)


class SqlRepository:
    """Base repository exposing the SQLAlchemy session.

    Operational driver failures are surfaced as ``StoreUnavailable`` so raw
    store exceptions never reach the service callers. Integrity errors are
    left alone; callers use them for idempotency.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @property
    def session(self) -> AsyncSession:
        return self._session

    async def execute(self, statement: Any):
        try:
            return await self.session.execute(statement)
        except OperationalError as exc:
            logger.error("Store call failed: %s", exc)
            raise StoreUnavailable() from exc

    async def flush(self) -> None:
        try:
            await self.session.flush()
        except OperationalError as exc:
            logger.error("Store flush failed: %s", exc)
            raise StoreUnavailable() from exc

    @asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        """SAVEPOINT scope; integrity errors still reach the caller untouched."""
        try:
            async with self.session.begin_nested():
                yield
        except OperationalError as exc:
            logger.error("Store savepoint failed: %s", exc)
            raise StoreUnavailable() from exc
