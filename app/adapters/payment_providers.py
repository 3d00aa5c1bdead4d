"""Connectivity probes for payment gateways.

Each probe makes one cheap authenticated call and reports the outcome as a
:class:`ConnectionTestResult`; provider and network errors never escape.
Stripe goes through its SDK (blocking, so it runs in a worker thread);
PayPal and Razorpay are plain REST calls over ``httpx``.
"""

import asyncio
import logging

import httpx
import stripe

from app.core.settings_workflow import ConnectionTestResult

logger = logging.getLogger(__name__)

PAYPAL_API_BASE = {
    "sandbox": "https://api-m.sandbox.paypal.com",
    "live": "https://api-m.paypal.com",
}
RAZORPAY_API_BASE = "https://api.razorpay.com/v1"


def _error_detail(response: httpx.Response) -> str:
    """Best human-readable reason from a provider error response."""
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return str(error.get("description") or error.get("message") or error)
        return str(body.get("error_description") or error or f"HTTP {response.status_code}")
    return f"HTTP {response.status_code}"


class PaymentProviderClient:
    """Probes Stripe, PayPal and Razorpay credentials."""

    def __init__(self, http: httpx.AsyncClient):
        self.http = http

    async def check_stripe(self, secret_key: str) -> ConnectionTestResult:
        """Retrieve the account balance with *secret_key*."""
        try:
            balance = await asyncio.to_thread(stripe.Balance.retrieve, api_key=secret_key)
        except stripe.StripeError as e:
            return ConnectionTestResult(
                success=False,
                message=f"Stripe connection failed: {e.user_message or e}",
            )
        except Exception as e:
            logger.warning("Stripe probe failed: %s", e)
            return ConnectionTestResult(success=False, message=f"Stripe connection failed: {e}")

        currencies = sorted({entry.currency for entry in balance.available})
        return ConnectionTestResult(
            success=True,
            message="Stripe connection successful",
            data={"currencies": currencies},
        )

    async def check_paypal(
        self, client_id: str, client_secret: str, mode: str = "sandbox"
    ) -> ConnectionTestResult:
        """Request an OAuth client-credentials token."""
        base_url = PAYPAL_API_BASE.get(mode, PAYPAL_API_BASE["sandbox"])
        try:
            response = await self.http.post(
                f"{base_url}/v1/oauth2/token",
                auth=(client_id, client_secret),
                data={"grant_type": "client_credentials"},
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            logger.warning("PayPal probe failed: %s", e)
            return ConnectionTestResult(success=False, message=f"PayPal connection failed: {e}")

        try:
            token = response.json().get("access_token") if response.status_code == 200 else None
        except ValueError:
            token = None
        if token:
            return ConnectionTestResult(
                success=True,
                message=f"PayPal connection successful ({mode})",
                data={"mode": mode},
            )
        return ConnectionTestResult(
            success=False,
            message=f"PayPal connection failed: {_error_detail(response)}",
        )

    async def check_razorpay(self, key_id: str, key_secret: str) -> ConnectionTestResult:
        """List a single plan with basic auth."""
        try:
            response = await self.http.get(
                f"{RAZORPAY_API_BASE}/plans",
                params={"count": 1},
                auth=(key_id, key_secret),
            )
        except httpx.HTTPError as e:
            logger.warning("Razorpay probe failed: %s", e)
            return ConnectionTestResult(success=False, message=f"Razorpay connection failed: {e}")

        if response.status_code == 200:
            return ConnectionTestResult(success=True, message="Razorpay connection successful")
        return ConnectionTestResult(
            success=False,
            message=f"Razorpay connection failed: {_error_detail(response)}",
        )
