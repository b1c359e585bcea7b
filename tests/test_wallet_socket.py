"""
WebSocket tests: live wallet updates reach a connected observer after commit.
"""

import asyncio
import json

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.websockets import WebSocketDisconnect

from gigledger.core.config import get_settings
from gigledger.core.security import create_access_token
from gigledger.infrastructure.database.base import Base
from gigledger.interfaces.http.deps import get_db_session, get_db_session_factory
from gigledger.interfaces.http.routers import create_api_router
from gigledger.interfaces.http.routers import realtime as realtime_router
from gigledger.modules.payments.signature import compute_signature

from conftest import build_engine


@pytest.fixture()
def socket_app(tmp_path):
    """An app without lifespan hooks, bound to its own database file."""
    engine = build_engine(tmp_path / "socket.db")

    async def create_schema():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_schema())
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_db_session():
        async with factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    test_app = FastAPI()
    test_app.include_router(create_api_router("/api"))
    test_app.include_router(realtime_router.router)
    test_app.dependency_overrides[get_db_session] = override_db_session
    test_app.dependency_overrides[get_db_session_factory] = lambda: factory
    yield test_app
    asyncio.run(engine.dispose())


def test_invalid_token_is_refused(socket_app):
    client = TestClient(socket_app)
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws/wallet?token=garbage"):
            pass
    assert exc_info.value.code == 1008


def test_snapshot_then_live_credit(socket_app):
    settings = get_settings()
    token = create_access_token("user-1")
    body = json.dumps(
        {"event": "charge.success", "data": {"amount": 250_000, "reference": "ws-1", "metadata": {"userId": "user-1"}}}
    ).encode()
    headers = {
        settings.payments.signature_header: compute_signature(settings.payments.secret_key, body),
        "Content-Type": "application/json",
    }

    with TestClient(socket_app) as client:
        with client.websocket_connect(f"/ws/wallet?token={token}") as ws:
            assert ws.receive_json() == {"type": "snapshot", "data": {"balance": 0, "transactions": []}}

            response = client.post("/api/payments/webhook", content=body, headers=headers)
            assert response.status_code == 200

            assert ws.receive_json() == {"type": "balance", "data": {"balance": 10}}
            message = ws.receive_json()
            assert message["type"] == "transaction"
            assert message["data"]["action"] == "insert"
            assert message["data"]["transaction"]["tokens_in"] == 10
            assert message["data"]["transaction"]["reference"] == "ws-1"
