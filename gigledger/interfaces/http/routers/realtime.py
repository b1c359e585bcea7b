"""Live wallet updates over WebSocket."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gigledger.core.config import Settings, get_settings
from gigledger.core.security import decode_access_token
from gigledger.interfaces.http.deps import get_db_session_factory
from gigledger.modules.wallets.service import WalletService
from gigledger.realtime import ProjectionChange, Subscription, WalletProjection, feed
from gigledger.schemas import WalletTransactionResponse, WSMessage

logger = logging.getLogger(__name__)

router = APIRouter()

MESSAGE_SNAPSHOT = "snapshot"
MESSAGE_BALANCE = "balance"
MESSAGE_TRANSACTION = "transaction"
MESSAGE_HEARTBEAT = "heartbeat"
SNAPSHOT_SIZE = 50


@router.websocket("/ws/wallet")
async def wallet_socket(
    websocket: WebSocket,
    token: str = Query(...),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_db_session_factory),
    settings: Settings = Depends(get_settings),
):
    try:
        user_id = decode_access_token(token).user_id
    except HTTPException as exc:
        logger.warning("WebSocket token rejected: %s", exc.detail)
        await websocket.close(code=1008, reason="Invalid token")
        return

    await websocket.accept()
    # subscribe first so nothing committed during the refetch is missed
    subscription = feed.subscribe(user_id)
    projection = WalletProjection(user_id)
    forwarder: Optional[asyncio.Task] = None
    receiver: Optional[asyncio.Task] = None
    try:
        await _send_change(websocket, await _refresh(projection, session_factory, settings))
        forwarder = asyncio.create_task(_forward(websocket, subscription, projection, session_factory, settings))
        receiver = asyncio.create_task(_receive(websocket))
        done, _ = await asyncio.wait({forwarder, receiver}, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.error("Wallet socket for %s failed: %s", user_id, exc)
    except WebSocketDisconnect:
        pass
    finally:
        for task in (forwarder, receiver):
            if task is not None and not task.done():
                task.cancel()
        subscription.close()
        logger.info("Wallet observer %s disconnected", user_id)


async def _refresh(
    projection: WalletProjection,
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings,
) -> ProjectionChange:
    async with session_factory() as session:
        service = WalletService.with_session(session, settings)
        wallet = await service.wallets.get_wallet(projection.user_id)
        transactions = await service.list_transactions(projection.user_id, SNAPSHOT_SIZE)
    return projection.reset(wallet, transactions)


async def _forward(
    websocket: WebSocket,
    subscription: Subscription,
    projection: WalletProjection,
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings,
) -> None:
    async for ledger_event in subscription:
        change = projection.apply(ledger_event)
        if projection.needs_refresh:
            change = await _refresh(projection, session_factory, settings)
        if change is not None:
            await _send_change(websocket, change)


async def _receive(websocket: WebSocket) -> None:
    while True:
        # clients only send heartbeats; reading keeps disconnects visible
        await websocket.receive_text()


async def _send_change(websocket: WebSocket, change: ProjectionChange) -> None:
    if change.kind == MESSAGE_SNAPSHOT:
        message = WSMessage(
            type=MESSAGE_SNAPSHOT,
            data={
                "balance": change.balance,
                "transactions": [_transaction_payload(tx) for tx in change.transactions],
            },
        )
    elif change.kind == MESSAGE_BALANCE:
        message = WSMessage(type=MESSAGE_BALANCE, data={"balance": change.balance})
    elif change.kind == MESSAGE_TRANSACTION:
        message = WSMessage(
            type=MESSAGE_TRANSACTION,
            data={"action": change.action.value, "transaction": _transaction_payload(change.transaction)},
        )
    else:
        return
    await websocket.send_text(message.model_dump_json())


def _transaction_payload(transaction) -> dict:
    return WalletTransactionResponse.model_validate(transaction).model_dump(mode="json")
