"""
Salla merchant API client.

Reads store resources on behalf of the signed-in merchant.
"""
from typing import Any, Dict, List, Optional

import httpx
import structlog

from salla_oauth.exceptions import MalformedResponseError, MerchantAPIError, TransportError
from salla_oauth.services.http_client import parse_json_object, send

logger = structlog.get_logger()


class MerchantService:
    """Bearer-authenticated calls to the Salla admin API."""

    def __init__(self, access_token: str, base_url: str, http_client: httpx.AsyncClient):
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.http = http_client

    async def list_orders(self, page: Optional[int] = None) -> List[Dict[str, Any]]:
        """Orders of the merchant's store."""
        return await self._list("orders", page)

    async def list_customers(self, page: Optional[int] = None) -> List[Dict[str, Any]]:
        """Customers of the merchant's store."""
        return await self._list("customers", page)

    async def _list(self, resource: str, page: Optional[int]) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/{resource}"
        params = {"page": page} if page else None

        try:
            response = await send(
                self.http,
                "GET",
                url,
                params=params,
                headers={
                    "Authorization": f"Bearer {self.access_token}",
                    "Accept": "application/json",
                },
            )
        except TransportError as exc:
            raise MerchantAPIError(f"Failed to list {resource}: {exc}") from exc

        if not response.is_success:
            logger.error("merchant_api_failed", resource=resource, status_code=response.status_code)
            raise MerchantAPIError(
                f"Failed to list {resource}: status {response.status_code}",
                status_code=response.status_code,
            )

        payload = parse_json_object(response)
        data = payload.get("data", [])
        if not isinstance(data, list):
            raise MalformedResponseError(
                f"Expected a list of {resource}, got {type(data).__name__}",
                body=response.text[:500],
            )

        logger.info("merchant_api_listed", resource=resource, count=len(data))
        return data
