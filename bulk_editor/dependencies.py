"""
FastAPI dependency injection.
One Shopify client per process, built from settings on startup.
"""

import logging
from typing import Optional

from .config import settings
from .shopify import ShopifyClient

logger = logging.getLogger(__name__)

# Global instance (initialized on startup)
_client: Optional[ShopifyClient] = None


async def init_dependencies():
    """Initialize global dependencies. Called on app startup."""
    global _client

    if not settings.shopify_shop_domain or not settings.shopify_access_token:
        logger.warning(
            "SHOPIFY_SHOP_DOMAIN or SHOPIFY_ACCESS_TOKEN not set; "
            "Shopify calls will fail until configured"
        )

    _client = ShopifyClient(
        settings.shopify_shop_domain,
        settings.shopify_access_token,
        api_version=settings.shopify_api_version,
        timeout=settings.request_timeout,
    )


async def close_dependencies():
    """Close global dependencies. Called on app shutdown."""
    global _client
    if _client:
        await _client.close()
        _client = None


def get_shopify_client() -> ShopifyClient:
    """Get the Shopify client instance."""
    if _client is None:
        raise RuntimeError("Shopify client not initialized")
    return _client
