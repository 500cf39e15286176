"""
Shopify Admin API client.

GraphQL is the primary transport; the REST admin endpoints are kept for
fields the GraphQL schema does not expose.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

# Substrings Shopify uses when a selection or input field is not in the schema
SCHEMA_ERROR_MARKERS = (
    "doesn't exist on type",
    "undefinedfield",
    "is not defined by type",
    "was provided invalid value",
)


class ShopifyClientError(Exception):
    """Base exception for Shopify client errors."""
    pass


class ShopifyAuthError(ShopifyClientError):
    """Authentication error."""
    pass


class ShopifyRateLimitError(ShopifyClientError):
    """Rate limit exceeded."""

    def __init__(self, message: str, retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class ShopifyGraphQLError(ShopifyClientError):
    """Top-level GraphQL errors returned with a 200 response."""

    def __init__(self, messages: List[str]):
        super().__init__(f"GraphQL errors: {messages}")
        self.messages = messages

    @property
    def is_schema_error(self) -> bool:
        """True if the API rejected a field that is not in its schema."""
        return any(
            marker in message.lower()
            for message in self.messages
            for marker in SCHEMA_ERROR_MARKERS
        )


class ShopifyUserError(ShopifyClientError):
    """Mutation completed but returned userErrors."""

    def __init__(self, errors: List[Dict[str, Any]]):
        self.messages = [e.get("message", str(e)) for e in errors]
        super().__init__("; ".join(self.messages))
        self.errors = errors


class ShopifyRestError(ShopifyClientError):
    """
    Non-2xx response from a REST admin endpoint.

    `reason` holds the remote error detail without the resource path, so
    identical failures on different variants read the same.
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        body: Any = None,
        reason: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.reason = reason or message


def format_rest_errors(detail: Any) -> str:
    """Flatten a REST `errors` value ({"price": ["is locked"]}) into text."""
    if isinstance(detail, dict):
        parts = []
        for field, messages in detail.items():
            if not isinstance(messages, list):
                messages = [messages]
            parts.extend(
                str(m) if field == "base" else f"{field} {m}" for m in messages
            )
        return "; ".join(parts)
    if isinstance(detail, list):
        return "; ".join(str(m) for m in detail)
    return str(detail)


def raise_for_user_errors(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    """
    Return the mutation payload under `key`, raising on userErrors.

    Raises:
        ShopifyUserError: If the payload lists any userErrors
        ShopifyClientError: If the payload is missing
    """
    payload = data.get(key)
    if payload is None:
        raise ShopifyClientError(f"Missing '{key}' in mutation response")
    user_errors = payload.get("userErrors") or []
    if user_errors:
        raise ShopifyUserError(user_errors)
    return payload


class ShopifyClient:
    """
    Async HTTP client for the Shopify Admin API (GraphQL and REST).

    Handles authentication, rate limiting, and retries.
    """

    API_VERSION = "2025-01"
    MAX_RETRIES = 5
    BASE_RETRY_DELAY = 1.0  # seconds

    def __init__(
        self,
        shop_domain: str,
        access_token: str,
        api_version: Optional[str] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Shopify client.

        Args:
            shop_domain: Store domain (e.g., "mystore.myshopify.com")
            access_token: Admin API access token
            api_version: Admin API version, defaults to API_VERSION
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        # Clean domain
        domain = shop_domain.strip()
        if domain.startswith("https://"):
            domain = domain[8:]
        elif domain.startswith("http://"):
            domain = domain[7:]
        domain = domain.rstrip("/")
        if domain and "." not in domain:
            domain = f"{domain}.myshopify.com"

        self.shop_domain = domain
        self.access_token = access_token
        self.api_version = api_version or self.API_VERSION
        self.base_url = f"https://{domain}/admin/api/{self.api_version}"
        self.graphql_url = f"{self.base_url}/graphql.json"

        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout, connect=10.0),
                headers={
                    "Content-Type": "application/json",
                    "X-Shopify-Access-Token": self.access_token,
                },
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _send(
        self,
        method: str,
        url: str,
        payload: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """
        Send one request with retry on throttling and network errors.

        Raises:
            ShopifyAuthError: On 401/403
            ShopifyRateLimitError: If still throttled after retries
            ShopifyClientError: If retries are exhausted
        """
        client = await self._get_client()
        last_error: Optional[Exception] = None

        for attempt in range(self.MAX_RETRIES):
            try:
                response = await client.request(method, url, json=payload, params=params)

                if response.status_code in (401, 403):
                    raise ShopifyAuthError(
                        f"Authentication failed for {self.shop_domain}"
                    )

                if response.status_code == 429:
                    retry_after = float(
                        response.headers.get("Retry-After", self.BASE_RETRY_DELAY)
                    )
                    raise ShopifyRateLimitError(
                        "Rate limit exceeded", retry_after=retry_after
                    )

                return response

            except ShopifyRateLimitError as e:
                last_error = e
                delay = e.retry_after if e.retry_after is not None else (
                    self.BASE_RETRY_DELAY * (2 ** attempt)
                )
                logger.warning(
                    f"Rate limited, waiting {delay:.1f}s "
                    f"(attempt {attempt + 1}/{self.MAX_RETRIES})"
                )
                await asyncio.sleep(delay)

            except httpx.RequestError as e:
                last_error = ShopifyClientError(f"Request error: {e}")
                delay = self.BASE_RETRY_DELAY * (2 ** attempt)
                logger.warning(
                    f"Request error, retrying in {delay:.1f}s: {e}"
                )
                await asyncio.sleep(delay)

        # All retries exhausted
        raise last_error or ShopifyClientError("Max retries exceeded")

    async def execute(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Execute a GraphQL query/mutation with retry logic.

        Args:
            query: GraphQL query or mutation string
            variables: Optional variables for the query

        Returns:
            The 'data' portion of the GraphQL response

        Raises:
            ShopifyAuthError: If authentication fails
            ShopifyRateLimitError: If rate limit exceeded after retries
            ShopifyGraphQLError: If the response carries GraphQL errors
            ShopifyClientError: For other errors
        """
        payload: Dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        for attempt in range(self.MAX_RETRIES):
            response = await self._send("POST", self.graphql_url, payload)
            if response.status_code >= 400:
                raise ShopifyClientError(
                    f"GraphQL HTTP {response.status_code}: {response.text}"
                )

            try:
                result = response.json()
            except ValueError as e:
                raise ShopifyClientError(f"Invalid GraphQL response: {e}") from e

            if result.get("errors"):
                errors = result["errors"]
                if isinstance(errors, str):
                    errors = [{"message": errors}]
                error_messages = [e.get("message", str(e)) for e in errors]

                # Throttling is reported as a GraphQL error, not a 429
                if any("throttl" in msg.lower() for msg in error_messages):
                    delay = self.BASE_RETRY_DELAY * (2 ** attempt)
                    logger.warning(
                        f"GraphQL throttled, waiting {delay:.1f}s "
                        f"(attempt {attempt + 1}/{self.MAX_RETRIES})"
                    )
                    await asyncio.sleep(delay)
                    continue

                raise ShopifyGraphQLError(error_messages)

            # Log rate limit status if available
            cost = (result.get("extensions") or {}).get("cost")
            if cost:
                available = cost.get("throttleStatus", {}).get("currentlyAvailable", 0)
                if available < 100:
                    logger.warning(
                        f"Low rate limit points: {available} available"
                    )

            return result.get("data") or {}

        raise ShopifyRateLimitError("GraphQL throttled after retries")

    async def rest(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Call a REST admin endpoint.

        Args:
            method: HTTP method
            path: Path below the versioned admin root (e.g. "/variants/1.json")
            payload: Optional JSON body
            params: Optional query parameters

        Returns:
            Decoded JSON body

        Raises:
            ShopifyRestError: On a non-2xx response
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        response = await self._send(method, url, payload, params)

        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = response.text

        if not response.is_success:
            detail = body.get("errors", body) if isinstance(body, dict) else body
            raise ShopifyRestError(
                f"REST {method} {path} failed ({response.status_code}): {detail}",
                status_code=response.status_code,
                body=body,
                reason=format_rest_errors(detail),
            )

        return body if isinstance(body, dict) else {}

    async def rest_get(
        self, path: str, params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """GET a REST admin resource."""
        return await self.rest("GET", path, params=params)

    async def rest_put(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """PUT a REST admin resource."""
        return await self.rest("PUT", path, payload)

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
