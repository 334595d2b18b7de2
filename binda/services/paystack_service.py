"""
Paystack Service
Initializes and verifies card transactions for online booking deposits
"""

import logging
from typing import Any, Optional

import httpx

from ..config import PAYSTACK_BASE_URL, PAYSTACK_SECRET_KEY

logger = logging.getLogger(__name__)


class PaystackError(Exception):
    """Paystack rejected the request or could not be reached"""


def to_minor_units(amount: float) -> int:
    """Paystack amounts are in the currency's lowest denomination (kobo for NGN)"""
    return int(round(float(amount) * 100))


class PaystackService:
    """Service for Paystack transaction API operations"""

    def __init__(self, secret_key: Optional[str] = None, base_url: Optional[str] = None):
        self.secret_key = secret_key or PAYSTACK_SECRET_KEY
        self.base_url = (base_url or PAYSTACK_BASE_URL).rstrip("/")

        if not self.secret_key:
            logger.warning("PAYSTACK_SECRET_KEY not set; online payments will fail until configured")

    def is_available(self) -> bool:
        return bool(self.secret_key)

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> dict[str, Any]:
        if not self.is_available():
            raise PaystackError("Payment provider is not configured")

        try:
            async with httpx.AsyncClient(timeout=30.0) as http_client:
                response = await http_client.request(
                    method, f"{self.base_url}{path}", headers=self._headers(), json=json
                )
        except httpx.HTTPError as e:
            logger.error(f"❌ Paystack {method} {path} failed: {e}")
            raise PaystackError("Payment provider unreachable") from e

        try:
            body = response.json()
        except ValueError as e:
            logger.error(f"❌ Paystack returned non-JSON response ({response.status_code})")
            raise PaystackError("Invalid response from payment provider") from e

        if response.status_code >= 400 or not body.get("status"):
            message = body.get("message") or f"HTTP {response.status_code}"
            logger.error(f"❌ Paystack {method} {path} rejected: {message}")
            raise PaystackError(message)

        return body.get("data") or {}

    async def initialize_transaction(
        self,
        email: str,
        amount: float,
        reference: str,
        callback_url: Optional[str] = None,
        currency: str = "NGN",
        metadata: Optional[dict] = None,
    ) -> dict[str, Any]:
        """
        Start a transaction. ``amount`` is in major units and converted here.

        Returns Paystack's data block: authorization_url, access_code, reference.
        """
        payload = {
            "email": email,
            "amount": to_minor_units(amount),
            "reference": reference,
            "currency": currency,
            "metadata": metadata or {},
        }
        if callback_url:
            payload["callback_url"] = callback_url

        data = await self._request("POST", "/transaction/initialize", json=payload)
        logger.info(f"💳 Paystack transaction initialized: {data.get('reference')}")
        return data

    async def verify_transaction(self, reference: str) -> dict[str, Any]:
        """Returns Paystack's data block; ``status`` is "success", "failed", "abandoned", ..."""
        data = await self._request("GET", f"/transaction/verify/{reference}")
        logger.info(f"💳 Paystack transaction {reference} verified: {data.get('status')}")
        return data


paystack_service = PaystackService()
