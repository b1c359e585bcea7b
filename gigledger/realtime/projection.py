"""In-memory view of one wallet, kept current from the change feed.

The feed gives no sequence numbers and may repeat or reorder events, so the
projection is written to converge anyway:

* transactions are keyed by id, so a repeated insert is a no-op and an
  update for an unseen row becomes an insert;
* the list is always ordered newest first by ``created_at`` (id breaks
  ties), independent of arrival order;
* a balance event older than the last one applied is ignored;
* a deleted id is remembered, so a late insert or update for it is dropped.

After (re)subscribing, callers must ``reset`` from a full refetch; a
``ResyncRequired`` event sets ``needs_refresh`` to ask for another one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Set

from gigledger.modules.wallets.models import TransactionRecord, WalletSnapshot

from .events import ChangeAction, LedgerEvent, ResyncRequired, TransactionChanged, WalletChanged

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProjectionChange:
    kind: str  # snapshot, balance, transaction, resync
    balance: Optional[int] = None
    action: Optional[ChangeAction] = None
    transaction: Optional[TransactionRecord] = None
    transactions: List[TransactionRecord] = field(default_factory=list)


Listener = Callable[[ProjectionChange], None]


class WalletProjection:
    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        self.balance: Optional[int] = None
        self.needs_refresh = True
        self._balance_at: Optional[datetime] = None
        self._transactions: Dict[str, TransactionRecord] = {}
        self._deleted: Set[str] = set()
        self._listeners: List[Listener] = []

    @property
    def transactions(self) -> List[TransactionRecord]:
        return sorted(
            self._transactions.values(),
            key=lambda tx: (tx.created_at, tx.id),
            reverse=True,
        )

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def reset(self, wallet: Optional[WalletSnapshot], transactions: Iterable[TransactionRecord]) -> ProjectionChange:
        self.balance = wallet.balance if wallet else 0
        self._balance_at = wallet.updated_at if wallet else None
        self._transactions = {tx.id: tx for tx in transactions}
        self._deleted.clear()
        self.needs_refresh = False
        change = ProjectionChange(kind="snapshot", balance=self.balance, transactions=self.transactions)
        self._notify(change)
        return change

    def apply(self, event: LedgerEvent) -> Optional[ProjectionChange]:
        if event.user_id != self.user_id:
            return None
        if isinstance(event, WalletChanged):
            change = self._apply_balance(event)
        elif isinstance(event, TransactionChanged):
            change = self._apply_transaction(event)
        elif isinstance(event, ResyncRequired):
            self.needs_refresh = True
            change = ProjectionChange(kind="resync")
        else:
            logger.warning("Unknown ledger event %r", event)
            return None
        if change is not None:
            self._notify(change)
        return change

    def _apply_balance(self, event: WalletChanged) -> Optional[ProjectionChange]:
        if (
            event.updated_at is not None
            and self._balance_at is not None
            and event.updated_at < self._balance_at
        ):
            return None
        if event.updated_at is not None:
            self._balance_at = event.updated_at
        if event.balance == self.balance:
            return None
        self.balance = event.balance
        return ProjectionChange(kind="balance", balance=event.balance)

    def _apply_transaction(self, event: TransactionChanged) -> Optional[ProjectionChange]:
        tx = event.transaction
        if event.action is ChangeAction.DELETE:
            self._deleted.add(tx.id)
            if self._transactions.pop(tx.id, None) is None:
                return None
        else:
            if tx.id in self._deleted:
                return None
            if self._transactions.get(tx.id) == tx:
                return None
            self._transactions[tx.id] = tx
        return ProjectionChange(kind="transaction", action=event.action, transaction=tx)

    def _notify(self, change: ProjectionChange) -> None:
        for listener in list(self._listeners):
            listener(change)
