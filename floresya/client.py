# floresya/client.py
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx
import requests

from floresya.config import settings
from floresya.errors import ApiError, NetworkError, NotFoundError

logger = logging.getLogger(__name__)

_TRANSPORT_ERRORS = (requests.exceptions.RequestException, httpx.HTTPError)


def _unwrap(r) -> Any:
    """
    Turn an API response (requests or httpx) into the envelope's ``data``.
    404 -> NotFoundError, other failures -> ApiError.
    """
    try:
        body = r.json()
    except ValueError:
        body = None
    message = None
    if isinstance(body, dict):
        message = body.get("message") or body.get("detail")
    if r.status_code == 404:
        raise NotFoundError(message or "not found")
    if r.status_code >= 400:
        raise ApiError(message or f"HTTP {r.status_code}", status_code=r.status_code)
    if not isinstance(body, dict) or not body.get("success"):
        raise ApiError(message or "unexpected response", status_code=r.status_code)
    return body.get("data")


class FloresYaClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
        session=None,
        async_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout if timeout is not None else settings.timeout
        self.async_transport = async_transport

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            r = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except _TRANSPORT_ERRORS as e:
            logger.error("%s %s failed: %s", method, url, e)
            raise NetworkError(f"could not reach {url}: {e}") from e
        return _unwrap(r)

    async def _request_async(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.async_transport
            ) as client:
                r = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error("%s %s failed: %s", method, url, e)
            raise NetworkError(f"could not reach {url}: {e}") from e
        return _unwrap(r)

    # Products
    def list_products(self, occasion: Optional[str] = None, featured_only: bool = False) -> List[Dict[str, Any]]:
        params = {}
        if occasion:
            params["occasion"] = occasion
        if featured_only:
            params["featured"] = "true"
        return self._request("GET", "/api/products", params=params)

    def search_products(self, name: str) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/products/search", params={"name": name})

    def get_product(self, product_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/api/products/{product_id}")

    async def get_product_async(self, product_id: int) -> Dict[str, Any]:
        return await self._request_async("GET", f"/api/products/{product_id}")

    # Settings
    def get_setting(self, key: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/settings/{key}")

    async def get_setting_async(self, key: str) -> Dict[str, Any]:
        return await self._request_async("GET", f"/api/settings/{key}")

    def update_setting(self, key: str, value: str) -> Dict[str, Any]:
        return self._request("PUT", f"/api/settings/{key}", json={"value": str(value)})

    # Orders
    def create_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/orders", json=payload)

    def get_order(self, order_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/api/orders/{order_id}")

    def list_orders(self, email: Optional[str] = None, status: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {}
        if email:
            params["email"] = email
        if status:
            params["status"] = status
        return self._request("GET", "/api/orders", params=params)

    def update_order_status(self, order_id: int, status: str, notes: Optional[str] = None) -> Dict[str, Any]:
        payload = {"status": status}
        if notes:
            payload["notes"] = notes
        return self._request("PATCH", f"/api/orders/{order_id}/status", json=payload)

    # Payments
    def get_payment_methods(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/payment-methods")

    def submit_payment(
        self,
        order_id: int,
        payment_method_id: int,
        amount_usd: Decimal,
        reference_number: Optional[str] = None,
        amount_ves: Optional[Decimal] = None,
    ) -> Dict[str, Any]:
        payload = {
            "order_id": order_id,
            "payment_method_id": payment_method_id,
            "amount_usd": str(amount_usd),
        }
        if reference_number:
            payload["reference_number"] = reference_number
        if amount_ves is not None:
            payload["amount_ves"] = str(amount_ves)
        return self._request("POST", "/api/payments", json=payload)

    # Utility: reset (for tests/demo)
    def reset(self) -> Dict[str, Any]:
        return self._request("POST", "/api/reset")
