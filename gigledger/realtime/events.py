"""Change events pushed to wallet observers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from gigledger.modules.wallets.models import TransactionRecord


class ChangeAction(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(slots=True, frozen=True)
class WalletChanged:
    user_id: str
    balance: int
    last_action: Optional[str] = None
    updated_at: Optional[datetime] = None


@dataclass(slots=True, frozen=True)
class TransactionChanged:
    user_id: str
    action: ChangeAction
    transaction: TransactionRecord


@dataclass(slots=True, frozen=True)
class ResyncRequired:
    """The observer missed events and must refetch the full state."""

    user_id: str


LedgerEvent = Union[WalletChanged, TransactionChanged, ResyncRequired]
