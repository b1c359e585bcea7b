"""Publish ledger change events only after the unit of work commits."""

from __future__ import annotations

import logging

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session, SessionTransaction

from .events import LedgerEvent
from .feed import LedgerFeed

logger = logging.getLogger(__name__)

_PENDING_KEY = "gigledger.pending_ledger_events"


class SessionChangeRecorder:
    """Collects events on the session until it commits.

    Each event remembers the innermost transaction it was recorded in, so
    rolling back a savepoint drops only what happened inside it.
    """

    def __init__(self, session: AsyncSession, feed: LedgerFeed) -> None:
        self.session = session
        self.feed = feed

    def record(self, ledger_event: LedgerEvent) -> None:
        sync_session = self.session.sync_session
        marker = sync_session.get_nested_transaction() or sync_session.get_transaction()
        self.session.info.setdefault(_PENDING_KEY, []).append((marker, self.feed, ledger_event))


def _within(marker: SessionTransaction | None, transaction: SessionTransaction) -> bool:
    while marker is not None:
        if marker is transaction:
            return True
        marker = marker.parent
    return False


@event.listens_for(Session, "after_commit")
def _publish_committed(session: Session) -> None:
    if session.get_nested_transaction() is not None:
        # savepoint release, the outer transaction has not committed yet
        return
    pending = session.info.pop(_PENDING_KEY, [])
    for _, target, ledger_event in pending:
        target.publish(ledger_event)
    if pending:
        logger.debug("Published %d ledger events", len(pending))


@event.listens_for(Session, "after_soft_rollback")
def _discard_rolled_back(session: Session, previous_transaction: SessionTransaction) -> None:
    pending = session.info.get(_PENDING_KEY)
    if not pending:
        return
    kept = [entry for entry in pending if not _within(entry[0], previous_transaction)]
    if len(kept) != len(pending):
        logger.debug("Discarded %d ledger events after rollback", len(pending) - len(kept))
    session.info[_PENDING_KEY] = kept


@event.listens_for(Session, "after_transaction_end")
def _drop_unpublished(session: Session, transaction: SessionTransaction) -> None:
    if transaction.parent is None:
        session.info.pop(_PENDING_KEY, None)
