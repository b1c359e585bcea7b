"""Client for the payment provider's checkout API (Paystack)."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from gigledger.core.config import PaymentSettings

from .exceptions import PaymentProviderError
from .models import CheckoutSession

logger = logging.getLogger(__name__)


class PaystackClient:
    def __init__(self, settings: PaymentSettings, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.settings = settings
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.settings.provider_base_url,
            headers={
                "Authorization": f"Bearer {self.settings.secret_key}",
                "Content-Type": "application/json",
            },
            timeout=self.settings.timeout_seconds,
            transport=self._transport,
        )

    async def initialize_transaction(self, *, email: str, amount: int, user_id: str) -> CheckoutSession:
        """Start a hosted checkout for ``amount`` major currency units."""
        body = {
            "email": email,
            "amount": amount * 100,
            "metadata": {"userId": user_id},
            "callback_url": self.settings.callback_url,
        }
        logger.info("Initializing checkout of %d for user %s", amount, user_id)
        try:
            async with self._client() as client:
                response = await client.post("/transaction/initialize", json=body)
        except httpx.HTTPError as exc:
            logger.error("Checkout initialization failed for %s: %s", user_id, exc)
            raise PaymentProviderError("Payment provider unreachable") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            logger.error("Invalid provider response (%s): %s", response.status_code, response.text)
            raise PaymentProviderError("Invalid response from payment provider") from exc

        if response.is_error or not payload.get("status"):
            message = payload.get("message") or "Payment initialization failed"
            logger.error("Provider refused checkout for %s: %s", user_id, message)
            raise PaymentProviderError(message)

        data = payload.get("data") or {}
        try:
            return CheckoutSession(
                authorization_url=data["authorization_url"],
                access_code=data.get("access_code"),
                reference=data["reference"],
            )
        except KeyError as exc:
            raise PaymentProviderError("Incomplete response from payment provider") from exc
