"""
Product reads: per-product snapshots and filtered search.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .client import ShopifyClient, ShopifyClientError, ShopifyRestError
from .ids import extract_numeric_id, to_gid
from .queries import PRODUCT_SEARCH_QUERY, PRODUCT_SNAPSHOT_QUERY

logger = logging.getLogger(__name__)

# GraphQL WeightUnit enum <-> REST weight_unit
WEIGHT_UNITS_TO_GRAPHQL = {
    "g": "GRAMS",
    "kg": "KILOGRAMS",
    "oz": "OUNCES",
    "lb": "POUNDS",
}
WEIGHT_UNITS_FROM_GRAPHQL = {v: k for k, v in WEIGHT_UNITS_TO_GRAPHQL.items()}

SEARCH_PAGE_SIZE = 50


class ProductNotFoundError(ShopifyClientError):
    """Product ID did not resolve to a product."""
    pass


@dataclass
class VariantSnapshot:
    """Current field values of one variant."""

    variant_id: str
    title: str = ""
    price: Optional[str] = None
    compare_at_price: Optional[str] = None
    sku: str = ""
    barcode: str = ""
    inventory_item_id: Optional[str] = None
    tracked: Optional[bool] = None
    requires_shipping: Optional[bool] = None
    unit_cost: Optional[str] = None
    cost_currency: Optional[str] = None
    weight: Optional[str] = None
    weight_unit: Optional[str] = None
    # False when the read path could not see the inventory item cost
    cost_known: bool = True


@dataclass
class ProductSnapshot:
    """Current field values of one product and its variants."""

    product_id: str  # numeric
    title: str = ""
    description_html: str = ""
    vendor: str = ""
    product_type: str = ""
    status: str = ""
    tags: List[str] = field(default_factory=list)
    category_id: Optional[str] = None
    variants: List[VariantSnapshot] = field(default_factory=list)

    @property
    def gid(self) -> str:
        return to_gid("Product", self.product_id)


def parse_variant(node: Dict[str, Any]) -> VariantSnapshot:
    """Parse a ProductVariant GraphQL node."""
    item = node.get("inventoryItem") or {}
    unit_cost = item.get("unitCost") or {}
    weight = ((item.get("measurement") or {}).get("weight")) or {}

    weight_value = weight.get("value")
    weight_unit = weight.get("unit")

    return VariantSnapshot(
        variant_id=node["id"],
        title=node.get("title") or "",
        price=node.get("price"),
        compare_at_price=node.get("compareAtPrice"),
        sku=node.get("sku") or "",
        barcode=node.get("barcode") or "",
        inventory_item_id=item.get("id"),
        tracked=item.get("tracked"),
        requires_shipping=item.get("requiresShipping"),
        unit_cost=unit_cost.get("amount"),
        cost_currency=unit_cost.get("currencyCode"),
        weight=str(weight_value) if weight_value is not None else None,
        weight_unit=WEIGHT_UNITS_FROM_GRAPHQL.get(weight_unit, weight_unit),
    )


def parse_product(node: Dict[str, Any]) -> ProductSnapshot:
    """Parse a Product GraphQL node."""
    variant_edges = (node.get("variants") or {}).get("edges") or []
    category = node.get("category") or {}

    return ProductSnapshot(
        product_id=extract_numeric_id(node["id"]),
        title=node.get("title") or "",
        description_html=node.get("descriptionHtml") or "",
        vendor=node.get("vendor") or "",
        product_type=node.get("productType") or "",
        status=node.get("status") or "",
        tags=list(node.get("tags") or []),
        category_id=category.get("id"),
        variants=[parse_variant(edge["node"]) for edge in variant_edges],
    )


async def fetch_product_snapshot(
    client: ShopifyClient,
    product_id: str,
) -> ProductSnapshot:
    """
    Fetch one product with all fields the editors need.

    Raises:
        ProductNotFoundError: If the product does not exist
        ShopifyClientError: On transport errors
    """
    data = await client.execute(
        PRODUCT_SNAPSHOT_QUERY,
        variables={"id": to_gid("Product", product_id)},
    )
    node = data.get("product")
    if not node:
        raise ProductNotFoundError(f"Product not found: {product_id}")
    return parse_product(node)


async def search_products(
    client: ShopifyClient,
    query: str = "",
    limit: int = 250,
) -> List[ProductSnapshot]:
    """
    Search products with a Shopify search query string.

    Follows pagination until `limit` products are collected.
    """
    products: List[ProductSnapshot] = []
    cursor: Optional[str] = None

    while len(products) < limit:
        data = await client.execute(
            PRODUCT_SEARCH_QUERY,
            variables={
                "first": min(SEARCH_PAGE_SIZE, limit - len(products)),
                "after": cursor,
                "query": query or None,
            },
        )
        connection = data.get("products") or {}
        products.extend(
            parse_product(edge["node"]) for edge in connection.get("edges") or []
        )

        page_info = connection.get("pageInfo") or {}
        if not page_info.get("hasNextPage"):
            break
        cursor = page_info.get("endCursor")

    logger.debug(f"Product search '{query}' returned {len(products)} products")
    return products


def parse_rest_product(product: Dict[str, Any]) -> ProductSnapshot:
    """Parse a REST product resource (used when GraphQL cannot read a field)."""
    variants = []
    for variant in product.get("variants") or []:
        inventory_item_id = variant.get("inventory_item_id")
        weight = variant.get("weight")
        variants.append(
            VariantSnapshot(
                variant_id=to_gid("ProductVariant", variant["id"]),
                title=variant.get("title") or "",
                price=variant.get("price"),
                compare_at_price=variant.get("compare_at_price"),
                sku=variant.get("sku") or "",
                barcode=variant.get("barcode") or "",
                inventory_item_id=(
                    to_gid("InventoryItem", inventory_item_id)
                    if inventory_item_id else None
                ),
                requires_shipping=variant.get("requires_shipping"),
                weight=str(weight) if weight is not None else None,
                weight_unit=(variant.get("weight_unit") or "").lower() or None,
                cost_known=False,
            )
        )

    tags = product.get("tags") or ""
    return ProductSnapshot(
        product_id=str(product["id"]),
        title=product.get("title") or "",
        description_html=product.get("body_html") or "",
        vendor=product.get("vendor") or "",
        product_type=product.get("product_type") or "",
        status=(product.get("status") or "").upper(),
        tags=[tag.strip() for tag in tags.split(",") if tag.strip()],
        variants=variants,
    )


async def fetch_product_snapshot_rest(
    client: ShopifyClient,
    product_id: str,
) -> ProductSnapshot:
    """
    Fetch one product through the REST admin API.

    Raises:
        ProductNotFoundError: If the product does not exist
    """
    try:
        data = await client.rest_get(f"products/{product_id}.json")
    except ShopifyRestError as e:
        if e.status_code == 404:
            raise ProductNotFoundError(f"Product not found: {product_id}") from e
        raise
    product = data.get("product")
    if not product:
        raise ProductNotFoundError(f"Product not found: {product_id}")

    snapshot = parse_rest_product(product)
    await load_inventory_items(client, snapshot.variants)
    return snapshot


async def load_inventory_items(
    client: ShopifyClient,
    variants: List[VariantSnapshot],
) -> None:
    """
    Fill cost, tracking and shipping flags on REST-read variants.

    The REST product resource carries only inventory item ids, so the
    items are read in one `inventory_items.json?ids=...` call. If that
    call fails the variants keep `cost_known=False`.
    """
    by_item_id = {
        extract_numeric_id(v.inventory_item_id): v
        for v in variants
        if v.inventory_item_id
    }
    if not by_item_id:
        return

    try:
        data = await client.rest_get(
            "inventory_items.json", params={"ids": ",".join(by_item_id)}
        )
    except ShopifyRestError as e:
        logger.warning(f"Could not read inventory items {list(by_item_id)}: {e}")
        return

    for item in data.get("inventory_items") or []:
        variant = by_item_id.get(str(item.get("id")))
        if variant is None:
            continue
        cost = item.get("cost")
        variant.unit_cost = str(cost) if cost is not None else None
        variant.cost_known = True
        if item.get("tracked") is not None:
            variant.tracked = item["tracked"]
        if item.get("requires_shipping") is not None:
            variant.requires_shipping = item["requires_shipping"]
