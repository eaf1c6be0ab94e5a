# retailer_sync.services.shopify.client

import json
import logging
import httpx
from typing import Dict, Optional, Any

from retailer_sync.core.exceptions import (
    ShopifyAPIError,
    ShopifyGraphQLError,
    ShopifyTransportError,
)
from retailer_sync.services.shopify.pacing import RequestPacer

logger = logging.getLogger(__name__)


class ShopifyGraphQLClient:
    """
    Async client for the Shopify Admin GraphQL API of a single store.

    Credentials are passed in already resolved; the client never looks at the
    environment. Each instance owns its own ``RequestPacer``.

    Error classes raised by ``execute``:
    - ShopifyTransportError: timeouts, network failures, 429, 5xx and
      ``THROTTLED`` GraphQL errors (callers may retry)
    - ShopifyAPIError: any other non-2xx response or an undecodable body
    - ShopifyGraphQLError: a top-level ``errors`` list

    Mutation ``userErrors`` are part of ``data`` and are left for the caller.
    """

    DEFAULT_API_VERSION = "2025-04"

    def __init__(
        self,
        store_domain: str,
        access_token: str,
        api_version: Optional[str] = None,
        timeout: float = 30.0,
        pacer: Optional[RequestPacer] = None,
    ):
        if not store_domain or not access_token:
            raise ValueError("store_domain and access_token are required for ShopifyGraphQLClient")

        self.store_domain = store_domain
        self.api_version = api_version or self.DEFAULT_API_VERSION
        self.timeout = timeout
        self.pacer = pacer or RequestPacer()

        self.graphql_url = f"https://{self.store_domain}/admin/api/{self.api_version}/graphql.json"
        self._access_token = access_token
        logger.debug(f"ShopifyGraphQLClient initialized for {self.store_domain} (API version {self.api_version})")

    @classmethod
    def from_settings(cls, store_domain: str, access_token: str, settings) -> "ShopifyGraphQLClient":
        pacer = RequestPacer(
            requests_per_second=settings.SHOPIFY_REQUESTS_PER_SECOND,
            max_concurrent=settings.SHOPIFY_MAX_CONCURRENT_REQUESTS,
        )
        return cls(
            store_domain,
            access_token,
            api_version=settings.SHOPIFY_API_VERSION,
            timeout=settings.SHOPIFY_REQUEST_TIMEOUT,
            pacer=pacer,
        )

    def _get_headers(self) -> Dict[str, str]:
        return {
            "X-Shopify-Access-Token": self._access_token,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def execute(self, query: str, variables: Optional[Dict[str, Any]] = None, estimated_cost: int = 10) -> Dict[str, Any]:
        return await self._make_request(query, variables, estimated_cost)

    async def _make_request(self, query: str, variables: Optional[Dict[str, Any]] = None, estimated_cost: int = 10) -> Dict[str, Any]:
        """
        Makes a GraphQL request to Shopify, paced by this store's RequestPacer.
        estimated_cost: rough query cost, checked against the throttle budget.
        """
        payload: Dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        logger.debug(f"POST {self.graphql_url} variables={json.dumps(variables or {})[:500]}")

        async with self.pacer.slot(estimated_cost):
            try:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.graphql_url, headers=self._get_headers(), json=payload)
            except httpx.TimeoutException as e:
                logger.warning(f"Timeout calling {self.store_domain}: {e}")
                raise ShopifyTransportError(f"Request timed out: {e}")
            except httpx.RequestError as e:
                logger.warning(f"Network error calling {self.store_domain}: {e}")
                raise ShopifyTransportError(f"Network error: {e}")

        status = response.status_code
        if status == 429:
            self.pacer.note_throttled()
            raise ShopifyTransportError(f"HTTP 429 from {self.store_domain}: throttled", status_code=status)
        if status >= 500:
            raise ShopifyTransportError(f"HTTP {status} from {self.store_domain}: {response.text[:500]}", status_code=status)
        if status < 200 or status >= 300:
            logger.error(f"Shopify API error {status} from {self.store_domain}: {response.text[:500]}")
            raise ShopifyAPIError(f"HTTP {status}: {response.text[:500]}", status_code=status)

        try:
            response_data = response.json()
        except ValueError:
            raise ShopifyAPIError(f"Failed to decode JSON response: {response.text[:500]}", status_code=status)

        if not isinstance(response_data, dict):
            raise ShopifyAPIError(f"Unexpected response body type: {type(response_data).__name__}", status_code=status)

        self.pacer.update_throttle_status(response_data.get("extensions"))

        errors = response_data.get("errors")
        if errors:
            if _is_throttled(errors):
                self.pacer.note_throttled()
                raise ShopifyTransportError(f"Throttled by {self.store_domain}", status_code=status)
            raise ShopifyGraphQLError(errors if isinstance(errors, list) else [{"message": str(errors)}])

        return response_data.get("data") or {}


def _is_throttled(errors) -> bool:
    if not isinstance(errors, list):
        return False
    for error in errors:
        extensions = error.get("extensions") if isinstance(error, dict) else None
        if isinstance(extensions, dict) and extensions.get("code") == "THROTTLED":
            return True
    return False
