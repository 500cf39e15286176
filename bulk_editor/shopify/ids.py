"""
Helpers for Shopify global IDs (gid://shopify/<Resource>/<id>).
"""

from typing import Union

GID_PREFIX = "gid://shopify/"


def to_gid(resource: str, value: Union[str, int]) -> str:
    """
    Wrap a numeric ID into a global ID.

    Values that are already global IDs are returned unchanged.
    """
    if isinstance(value, str) and value.startswith("gid://"):
        return value
    return f"{GID_PREFIX}{resource}/{value}"


def extract_numeric_id(gid: Union[str, int]) -> str:
    """
    Extract the resource-local numeric ID used by the REST API.

    Args:
        gid: Global ID (e.g. "gid://shopify/ProductVariant/42") or bare ID

    Returns:
        The numeric part as a string (e.g. "42")

    Raises:
        ValueError: If no numeric ID can be extracted
    """
    text = str(gid).strip()
    # Drop query suffixes some resources carry (e.g. "?inventory_item")
    text = text.split("?", 1)[0]
    numeric_id = text.rstrip("/").split("/")[-1]
    if not numeric_id or not numeric_id.isdigit():
        raise ValueError(f"Cannot extract numeric ID from {gid!r}")
    return numeric_id


def normalize_product_id(value: Union[str, int]) -> str:
    """Accept a numeric product ID or a product gid, return the numeric ID."""
    return extract_numeric_id(value)
