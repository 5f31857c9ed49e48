"""
Billing provider drivers.

The core only ever asks the provider for three things: a customer, a checkout
URL and a billing-portal URL. Subscription state is read back from tenant
columns kept in sync elsewhere.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import uuid4
import httpx
from fastapi import status
from framework.config import Settings
from framework.exceptions.handler import BusinessException
from framework.logging.logger import get_logger

logger = get_logger("billing_provider")


class BillingProviderError(BusinessException):
    default_message = "Billing provider request failed"
    default_status = status.HTTP_502_BAD_GATEWAY


class BaseBillingProvider(ABC):
    @abstractmethod
    async def create_customer(self, email: str, name: str, tenant_id: int) -> str:
        """Create a customer and return its provider id."""

    @abstractmethod
    async def create_checkout_session(
        self, customer_id: str, price_id: str, tenant_id: int, success_url: str, cancel_url: str
    ) -> str:
        """Create a subscription checkout and return the URL to redirect to."""

    @abstractmethod
    async def create_portal_session(self, customer_id: str, return_url: str) -> str:
        """Create a self-service billing portal session and return its URL."""


class MockBillingProvider(BaseBillingProvider):
    """Logs calls and returns fake identifiers; for development and tests."""

    async def create_customer(self, email: str, name: str, tenant_id: int) -> str:
        customer_id = f"cus_mock_{uuid4().hex[:14]}"
        logger.info(f"[MOCK] created billing customer {customer_id} for tenant {tenant_id}")
        return customer_id

    async def create_checkout_session(self, customer_id, price_id, tenant_id, success_url, cancel_url) -> str:
        logger.info(f"[MOCK] checkout for tenant {tenant_id} price={price_id}")
        return f"{success_url}&mock_checkout={uuid4().hex[:8]}"

    async def create_portal_session(self, customer_id: str, return_url: str) -> str:
        logger.info(f"[MOCK] portal session for customer {customer_id}")
        return f"{return_url}?mock_portal=1"


class StripeBillingProvider(BaseBillingProvider):
    """Stripe REST API over httpx (form-encoded, bearer secret key)."""

    def __init__(
        self,
        secret_key: str,
        api_base: str = "https://api.stripe.com/v1",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_base = api_base.rstrip("/")
        self.headers = {"Authorization": f"Bearer {secret_key}"}
        self.timeout = timeout
        self.transport = transport

    async def _post(self, path: str, data: dict) -> dict:
        url = f"{self.api_base}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, data=data, headers=self.headers)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"[Stripe] POST {path} failed with {e.response.status_code}")
            raise BillingProviderError() from e
        except httpx.HTTPError as e:
            logger.error(f"[Stripe] POST {path} failed: {type(e).__name__}")
            raise BillingProviderError() from e

    async def create_customer(self, email: str, name: str, tenant_id: int) -> str:
        body = await self._post("/customers", {
            "email": email,
            "name": name,
            "metadata[tenantId]": str(tenant_id),
        })
        return body["id"]

    async def create_checkout_session(self, customer_id, price_id, tenant_id, success_url, cancel_url) -> str:
        body = await self._post("/checkout/sessions", {
            "customer": customer_id,
            "mode": "subscription",
            "payment_method_types[0]": "card",
            "line_items[0][price]": price_id,
            "line_items[0][quantity]": "1",
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata[tenantId]": str(tenant_id),
            "subscription_data[metadata][tenantId]": str(tenant_id),
        })
        return body["url"]

    async def create_portal_session(self, customer_id: str, return_url: str) -> str:
        body = await self._post("/billing_portal/sessions", {
            "customer": customer_id,
            "return_url": return_url,
        })
        return body["url"]


def build_billing_provider(config: Settings) -> Optional[BaseBillingProvider]:
    """Provider selected by BILLING_DRIVER; None means billing is switched off."""
    driver = (config.BILLING_DRIVER or "none").lower()
    if driver == "mock":
        return MockBillingProvider()
    if driver == "stripe":
        if not config.STRIPE_SECRET_KEY:
            logger.warning("BILLING_DRIVER=stripe but STRIPE_SECRET_KEY is not set. Billing features will be disabled.")
            return None
        return StripeBillingProvider(config.STRIPE_SECRET_KEY, config.STRIPE_API_BASE)
    if driver != "none":
        logger.warning(f"Unsupported BILLING_DRIVER={config.BILLING_DRIVER!r}, billing disabled")
    return None
