"""
Shopify Admin API module.
"""

from .client import (
    ShopifyClient,
    ShopifyClientError,
    ShopifyAuthError,
    ShopifyRateLimitError,
    ShopifyGraphQLError,
    ShopifyUserError,
    ShopifyRestError,
    raise_for_user_errors,
)
from .ids import to_gid, extract_numeric_id, normalize_product_id
from .products import (
    ProductSnapshot,
    VariantSnapshot,
    ProductNotFoundError,
    fetch_product_snapshot,
    fetch_product_snapshot_rest,
    search_products,
)

__all__ = [
    "ShopifyClient",
    "ShopifyClientError",
    "ShopifyAuthError",
    "ShopifyRateLimitError",
    "ShopifyGraphQLError",
    "ShopifyUserError",
    "ShopifyRestError",
    "raise_for_user_errors",
    "to_gid",
    "extract_numeric_id",
    "normalize_product_id",
    "ProductSnapshot",
    "VariantSnapshot",
    "ProductNotFoundError",
    "fetch_product_snapshot",
    "fetch_product_snapshot_rest",
    "search_products",
]
