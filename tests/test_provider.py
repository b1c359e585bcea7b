"""
Tests for the checkout client against a mocked provider.
"""

import json

import httpx
import pytest

from gigledger.core.config import PaymentSettings
from gigledger.modules.payments.exceptions import PaymentProviderError
from gigledger.modules.payments.provider import PaystackClient

SETTINGS = PaymentSettings(
    secret_key="sk_test_secret",
    provider_base_url="https://provider.test",
    callback_url="https://gigzz.test/wallet",
)


def _client(handler) -> PaystackClient:
    return PaystackClient(SETTINGS, transport=httpx.MockTransport(handler))


class TestInitializeTransaction:
    @pytest.mark.asyncio
    async def test_sends_minor_units_and_user_metadata(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "status": True,
                    "message": "Authorization URL created",
                    "data": {
                        "authorization_url": "https://checkout.test/abc",
                        "access_code": "abc",
                        "reference": "ref-abc",
                    },
                },
            )

        checkout = await _client(handler).initialize_transaction(email="a@b.test", amount=2500, user_id="user-1")

        assert checkout.authorization_url == "https://checkout.test/abc"
        assert checkout.reference == "ref-abc"
        assert captured["url"] == "https://provider.test/transaction/initialize"
        assert captured["auth"] == "Bearer sk_test_secret"
        assert captured["body"] == {
            "email": "a@b.test",
            "amount": 250000,
            "metadata": {"userId": "user-1"},
            "callback_url": "https://gigzz.test/wallet",
        }

    @pytest.mark.asyncio
    async def test_provider_refusal(self):
        def handler(request):
            return httpx.Response(400, json={"status": False, "message": "Invalid email"})

        with pytest.raises(PaymentProviderError, match="Invalid email"):
            await _client(handler).initialize_transaction(email="bad", amount=100, user_id="user-1")

    @pytest.mark.asyncio
    async def test_non_json_response(self):
        def handler(request):
            return httpx.Response(502, text="<html>bad gateway</html>")

        with pytest.raises(PaymentProviderError):
            await _client(handler).initialize_transaction(email="a@b.test", amount=100, user_id="user-1")

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(PaymentProviderError, match="unreachable"):
            await _client(handler).initialize_transaction(email="a@b.test", amount=100, user_id="user-1")

    @pytest.mark.asyncio
    async def test_incomplete_payload(self):
        def handler(request):
            return httpx.Response(200, json={"status": True, "data": {"access_code": "x"}})

        with pytest.raises(PaymentProviderError, match="Incomplete"):
            await _client(handler).initialize_transaction(email="a@b.test", amount=100, user_id="user-1")
