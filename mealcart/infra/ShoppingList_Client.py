"""HTTP client for the shopping list persistence API (one meal plan per client)."""
import logging
from typing import Any, Dict, Optional, Type

import httpx

from mealcart.domain.errors import AggregateFetchError, MealCartError, PersistenceError, PreconditionError
from mealcart.utilities import config

logger = logging.getLogger(__name__)


class ShoppingListClient:
    def __init__(self, plan_id: str, token: Optional[str], base_url: Optional[str] = None,
                 timeout: Optional[float] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.plan_id = plan_id
        self.token = token
        self.base_url = (base_url or config.API_BASE_URL).rstrip('/')
        self.timeout = config.REQUEST_TIMEOUT_SECONDS if timeout is None else timeout
        self._transport = transport

    # === Reads ===
    async def get_shopping_list(self) -> Dict[str, Any]:
        return await self._request("GET", "/shopping-list", AggregateFetchError,
                                   "Failed to generate shopping list")

    async def get_categorized(self) -> Dict[str, Any]:
        return await self._request("GET", "/shopping-list/categorized", AggregateFetchError,
                                   "Failed to generate categorized shopping list")

    async def get_status(self) -> Dict[str, Any]:
        return await self._request("GET", "/shopping-list/status", AggregateFetchError,
                                   "Failed to retrieve shopping list")

    async def get_printable(self, fmt: str = "text"):
        '''Printable list: dict for json, str for text, bytes for pdf.'''
        response = await self._send("GET", "/shopping-list/printable", AggregateFetchError,
                                    "Failed to generate printable shopping list", params={"format": fmt})
        if fmt == "json":
            return self._unwrap(response)
        if fmt == "pdf":
            return response.content
        return response.text

    # === Writes ===
    async def update_check(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        '''PATCH one of {items, checked} | {category, checked} | {checkAll, checked}.'''
        return await self._request("PATCH", "/shopping-list/check", PersistenceError,
                                   "Failed to update shopping list", json=payload)

    async def reset(self) -> Dict[str, Any]:
        return await self._request("POST", "/shopping-list/reset", PersistenceError,
                                   "Failed to reset shopping list", json={})

    # === Plumbing ===
    def _require(self):
        if not self.token:
            raise PreconditionError("Authentication token is required")
        if not self.plan_id:
            raise PreconditionError("Meal plan id is required")

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.token}",
        }

    async def _request(self, method: str, path: str, error_cls: Type[MealCartError], default_message: str, **kwargs):
        response = await self._send(method, path, error_cls, default_message, **kwargs)
        return self._unwrap(response)

    async def _send(self, method: str, path: str, error_cls: Type[MealCartError], default_message: str, **kwargs):
        self._require()
        url = f"{self.base_url}/meal-planner/{self.plan_id}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise error_cls(str(e) or default_message) from e
        if response.is_error:
            message = self._error_message(response) or default_message
            logger.warning("%s %s returned %s: %s", method, path, response.status_code, message)
            raise error_cls(message, status=response.status_code)
        return response

    @staticmethod
    def _unwrap(response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {}
        if isinstance(body, dict) and "data" in body:
            return body["data"] or {}
        return body if isinstance(body, dict) else {}

    @staticmethod
    def _error_message(response: httpx.Response) -> Optional[str]:
        try:
            body = response.json()
        except ValueError:
            return response.text or None
        if isinstance(body, dict):
            detail = body.get("message") or body.get("detail")
            return detail if isinstance(detail, str) else None
        return None


__all__ = ['ShoppingListClient']
