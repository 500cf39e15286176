"""
Field editors: one strategy per editable field.

A field editor knows how to read the current value of its field from a
product snapshot, compute the new value, and write it back through the
GraphQL API (primary) or the REST API (fallback).
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from ..shopify.client import (
    ShopifyClient,
    ShopifyClientError,
    ShopifyGraphQLError,
    raise_for_user_errors,
)
from ..shopify.ids import extract_numeric_id
from ..shopify.mutations import (
    INVENTORY_ITEM_UPDATE,
    PRODUCT_UPDATE,
    PRODUCT_VARIANTS_BULK_UPDATE,
)
from ..shopify.products import (
    WEIGHT_UNITS_TO_GRAPHQL,
    ProductSnapshot,
    VariantSnapshot,
    fetch_product_snapshot,
    fetch_product_snapshot_rest,
)
from .transforms import (
    PriceEdit,
    SkuEdit,
    TagEdit,
    TextEdit,
    WeightEdit,
    format_money,
    format_number,
    normalize_money,
    normalize_tags,
)

logger = logging.getLogger(__name__)


@dataclass
class Target:
    """One writable unit: a product (product fields) or a variant."""

    target_id: str
    current: Any
    product: ProductSnapshot
    variant: Optional[VariantSnapshot] = None


class FieldEditor:
    """
    Base strategy for editing one field across products.

    Subclasses set the class attributes and implement `targets`,
    `compute`, `write_primary` and, if the field has a REST equivalent,
    `write_fallback`.
    """

    section = ""
    label = ""
    target_noun = "products"
    has_fallback = True

    async def fetch(self, client: ShopifyClient, product_id: str) -> ProductSnapshot:
        """Read the product; fall back to REST if GraphQL rejects a field."""
        try:
            return await fetch_product_snapshot(client, product_id)
        except ShopifyGraphQLError as e:
            if not e.is_schema_error:
                raise
            logger.warning(
                f"GraphQL cannot read product {product_id} ({e.messages}), "
                f"reading through REST"
            )
            return await fetch_product_snapshot_rest(client, product_id)

    def targets(self, product: ProductSnapshot) -> List[Target]:
        raise NotImplementedError

    def compute(self, target: Target) -> Any:
        raise NotImplementedError

    def normalize(self, value: Any) -> Any:
        return value

    def is_unchanged(self, current: Any, new: Any) -> bool:
        return self.normalize(current) == self.normalize(new)

    def display(self, value: Any) -> Any:
        """JSON-friendly form of a value for the response."""
        return value

    async def write_primary(self, client: ShopifyClient, target: Target, new: Any) -> Any:
        raise NotImplementedError

    async def write_fallback(self, client: ShopifyClient, target: Target, new: Any) -> Any:
        raise ShopifyClientError(f"No fallback transport for {self.section}")


# ---------------------------------------------------------------------------
# Product-level fields
# ---------------------------------------------------------------------------

class ProductFieldEditor(FieldEditor):
    """Edits a field stored on the product itself via productUpdate."""

    attribute = ""
    graphql_field = ""
    rest_field = ""

    def __init__(self, edit: TextEdit):
        self.edit = edit

    def targets(self, product: ProductSnapshot) -> List[Target]:
        return [Target(product.gid, getattr(product, self.attribute), product)]

    def compute(self, target: Target) -> Any:
        return self.edit.apply(target.current)

    def to_rest(self, value: Any) -> Any:
        return value

    async def write_primary(self, client: ShopifyClient, target: Target, new: Any) -> Any:
        data = await client.execute(
            PRODUCT_UPDATE,
            variables={"input": {"id": target.product.gid, self.graphql_field: new}},
        )
        raise_for_user_errors(data, "productUpdate")
        return new

    async def write_fallback(self, client: ShopifyClient, target: Target, new: Any) -> Any:
        numeric_id = extract_numeric_id(target.product.gid)
        await client.rest_put(
            f"products/{numeric_id}.json",
            {"product": {"id": int(numeric_id), self.rest_field: self.to_rest(new)}},
        )
        return new


class TitleEditor(ProductFieldEditor):
    section = "title"
    label = "Title"
    attribute = "title"
    graphql_field = "title"
    rest_field = "title"


class DescriptionEditor(ProductFieldEditor):
    section = "description"
    label = "Description"
    attribute = "description_html"
    graphql_field = "descriptionHtml"
    rest_field = "body_html"


class VendorEditor(ProductFieldEditor):
    section = "vendor"
    label = "Vendor"
    attribute = "vendor"
    graphql_field = "vendor"
    rest_field = "vendor"


class ProductTypeEditor(ProductFieldEditor):
    section = "productType"
    label = "Product type"
    attribute = "product_type"
    graphql_field = "productType"
    rest_field = "product_type"


class StatusEditor(ProductFieldEditor):
    section = "status"
    label = "Status"
    attribute = "status"
    graphql_field = "status"
    rest_field = "status"

    def normalize(self, value: Any) -> Any:
        return (value or "").upper()

    def to_rest(self, value: Any) -> Any:
        return value.lower()


class TagsEditor(ProductFieldEditor):
    section = "tags"
    label = "Tags"
    attribute = "tags"
    graphql_field = "tags"
    rest_field = "tags"

    def __init__(self, edit: TagEdit):
        super().__init__(edit)

    def normalize(self, value: Any) -> Any:
        return normalize_tags(value)

    def to_rest(self, value: Any) -> Any:
        return ", ".join(value)


class CategoryEditor(ProductFieldEditor):
    """Product taxonomy category; REST has no equivalent field."""

    section = "productCategory"
    label = "Product category"
    attribute = "category_id"
    graphql_field = "category"
    has_fallback = False


# ---------------------------------------------------------------------------
# Variant-level fields
# ---------------------------------------------------------------------------

class VariantFieldEditor(FieldEditor):
    """Edits a field stored on each variant (or its inventory item)."""

    target_noun = "variants"

    def targets(self, product: ProductSnapshot) -> List[Target]:
        return [
            Target(variant.variant_id, self.read(variant), product, variant)
            for variant in product.variants
        ]

    def read(self, variant: VariantSnapshot) -> Any:
        raise NotImplementedError

    async def bulk_update(self, client: ShopifyClient, target: Target, fields: Dict[str, Any]) -> None:
        """Write variant fields with productVariantsBulkUpdate."""
        data = await client.execute(
            PRODUCT_VARIANTS_BULK_UPDATE,
            variables={
                "productId": target.product.gid,
                "variants": [{"id": target.target_id, **fields}],
            },
        )
        raise_for_user_errors(data, "productVariantsBulkUpdate")

    async def rest_update_variant(
        self, client: ShopifyClient, target: Target, fields: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Write variant fields with PUT variants/{id}.json."""
        numeric_id = extract_numeric_id(target.target_id)
        data = await client.rest_put(
            f"variants/{numeric_id}.json",
            {"variant": {"id": int(numeric_id), **fields}},
        )
        return data.get("variant") or {}


class PriceEditor(VariantFieldEditor):
    section = "price"
    label = "Price"

    def __init__(self, edit: PriceEdit):
        self.edit = edit

    def read(self, variant: VariantSnapshot) -> Dict[str, Optional[str]]:
        return {"price": variant.price, "compareAtPrice": variant.compare_at_price}

    def compute(self, target: Target) -> Dict[str, Optional[str]]:
        if self.edit.uses_cost and not target.variant.cost_known:
            raise ShopifyClientError(
                "Cost per item could not be read, refusing to price from cost"
            )
        return self.edit.apply(
            target.variant.price,
            target.variant.compare_at_price,
            target.variant.unit_cost,
        )

    def is_unchanged(self, current: Dict[str, Any], new: Dict[str, Any]) -> bool:
        return all(
            normalize_money(current.get(key)) == normalize_money(value)
            for key, value in new.items()
        )

    async def write_primary(self, client: ShopifyClient, target: Target, new: Any) -> Any:
        await self.bulk_update(client, target, new)
        return new

    async def write_fallback(self, client: ShopifyClient, target: Target, new: Any) -> Any:
        rest_fields = {}
        if "price" in new:
            rest_fields["price"] = new["price"]
        if "compareAtPrice" in new:
            rest_fields["compare_at_price"] = new["compareAtPrice"]
        await self.rest_update_variant(client, target, rest_fields)
        return new


class SkuEditor(VariantFieldEditor):
    section = "sku"
    label = "SKU"

    def __init__(self, edit: SkuEdit):
        self.edit = edit

    def read(self, variant: VariantSnapshot) -> str:
        return variant.sku

    def compute(self, target: Target) -> str:
        return self.edit.apply(target.current)

    async def write_primary(self, client: ShopifyClient, target: Target, new: Any) -> Any:
        await self.bulk_update(client, target, {"inventoryItem": {"sku": new}})
        return new

    async def write_fallback(self, client: ShopifyClient, target: Target, new: Any) -> Any:
        await self.rest_update_variant(client, target, {"sku": new})
        return new


class BarcodeEditor(VariantFieldEditor):
    section = "barcode"
    label = "Barcode"

    def __init__(self, barcode: str):
        self.barcode = barcode

    def read(self, variant: VariantSnapshot) -> str:
        return variant.barcode

    def compute(self, target: Target) -> str:
        return self.barcode

    async def write_primary(self, client: ShopifyClient, target: Target, new: Any) -> Any:
        await self.bulk_update(client, target, {"barcode": new})
        return new

    async def write_fallback(self, client: ShopifyClient, target: Target, new: Any) -> Any:
        await self.rest_update_variant(client, target, {"barcode": new})
        return new


class WeightEditor(VariantFieldEditor):
    """
    Variant weight and weight unit.

    With a weight value the variant is skipped only if value and unit
    both match; in unit-only mode only the unit is compared and the
    current weight is kept.
    """

    section = "variantWeight"
    label = "Variant weight"

    def __init__(self, edit: WeightEdit):
        self.edit = edit

    def read(self, variant: VariantSnapshot) -> Tuple[str, str]:
        weight = format_number(variant.weight) if variant.weight is not None else "0"
        return weight, (variant.weight_unit or "g").lower()

    def compute(self, target: Target) -> Tuple[str, str]:
        weight, unit = target.current
        return self.edit.apply(weight, unit)

    def normalize(self, value: Tuple[str, str]) -> Any:
        weight, unit = value
        if self.edit.unit_only:
            return unit
        return format_number(weight), unit

    def display(self, value: Tuple[str, str]) -> Dict[str, str]:
        weight, unit = value
        return {"weight": weight, "weightUnit": unit}

    async def write_primary(self, client: ShopifyClient, target: Target, new: Any) -> Any:
        weight, unit = new
        await self.bulk_update(
            client,
            target,
            {
                "inventoryItem": {
                    "measurement": {
                        "weight": {
                            "value": float(weight),
                            "unit": WEIGHT_UNITS_TO_GRAPHQL[unit],
                        }
                    }
                }
            },
        )
        return new

    async def write_fallback(self, client: ShopifyClient, target: Target, new: Any) -> Any:
        weight, unit = new
        numeric_id = extract_numeric_id(target.target_id)

        # The snapshot may not carry the weight; read the value REST has
        current = (await client.rest_get(f"variants/{numeric_id}.json")).get("variant") or {}
        current_weight = format_number(current.get("weight") or 0)
        weight_to_write = current_weight if self.edit.unit_only else weight
        logger.debug(
            f"Variant {numeric_id} weight {current_weight} "
            f"{current.get('weight_unit')} -> {weight_to_write} {unit}"
        )

        updated = await self.rest_update_variant(
            client,
            target,
            {"weight": float(Decimal(weight_to_write)), "weight_unit": unit},
        )
        new_weight = updated.get("weight")
        return (
            format_number(new_weight) if new_weight is not None else weight_to_write,
            updated.get("weight_unit") or unit,
        )


class InventoryItemEditor(VariantFieldEditor):
    """Edits a field on the variant's inventory item."""

    graphql_field = ""
    rest_field = ""

    def to_graphql(self, value: Any) -> Any:
        return value

    def to_rest(self, value: Any) -> Any:
        return value

    async def write_primary(self, client: ShopifyClient, target: Target, new: Any) -> Any:
        item_id = target.variant.inventory_item_id
        if not item_id:
            raise ShopifyClientError("No inventory item found")
        data = await client.execute(
            INVENTORY_ITEM_UPDATE,
            variables={"id": item_id, "input": {self.graphql_field: self.to_graphql(new)}},
        )
        raise_for_user_errors(data, "inventoryItemUpdate")
        return new

    async def inventory_item_numeric_id(self, client: ShopifyClient, target: Target) -> str:
        if target.variant.inventory_item_id:
            return extract_numeric_id(target.variant.inventory_item_id)
        numeric_id = extract_numeric_id(target.target_id)
        variant = (await client.rest_get(f"variants/{numeric_id}.json")).get("variant") or {}
        inventory_item_id = variant.get("inventory_item_id")
        if not inventory_item_id:
            raise ShopifyClientError("No inventory item ID found for variant")
        return str(inventory_item_id)

    async def write_fallback(self, client: ShopifyClient, target: Target, new: Any) -> Any:
        item_id = await self.inventory_item_numeric_id(client, target)
        await client.rest_put(
            f"inventory_items/{item_id}.json",
            {"inventory_item": {"id": int(item_id), self.rest_field: self.to_rest(new)}},
        )
        return new


class CostEditor(InventoryItemEditor):
    section = "costPerItem"
    label = "Cost per item"
    graphql_field = "cost"
    rest_field = "cost"

    def __init__(self, cost: Decimal):
        self.cost = format_money(cost)

    def read(self, variant: VariantSnapshot) -> Optional[str]:
        return variant.unit_cost

    def compute(self, target: Target) -> str:
        return self.cost

    def normalize(self, value: Any) -> Any:
        return normalize_money(value)


class TracksInventoryEditor(InventoryItemEditor):
    section = "tracksInventory"
    label = "Inventory tracking"
    graphql_field = "tracked"
    rest_field = "tracked"

    def __init__(self, tracked: bool):
        self.tracked = tracked

    def read(self, variant: VariantSnapshot) -> Optional[bool]:
        return variant.tracked

    def compute(self, target: Target) -> bool:
        return self.tracked


class RequiresShippingEditor(InventoryItemEditor):
    section = "requiresShipping"
    label = "Shipping requirement"
    graphql_field = "requiresShipping"
    rest_field = "requires_shipping"

    def __init__(self, requires_shipping: bool):
        self.requires_shipping = requires_shipping

    def read(self, variant: VariantSnapshot) -> Optional[bool]:
        return variant.requires_shipping

    def compute(self, target: Target) -> bool:
        return self.requires_shipping
