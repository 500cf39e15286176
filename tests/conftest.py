"""
Shared fixtures: an in-memory Shopify Admin API behind httpx.MockTransport.
"""

import json
import re
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

from bulk_editor.shopify import ShopifyClient

OPERATION_NAME = re.compile(r"(?:query|mutation)\s+(\w+)")


def make_variant(
    variant_id: int,
    price: str = "10.00",
    compare_at_price: Optional[str] = None,
    sku: str = "",
    barcode: str = "",
    weight: Optional[float] = None,
    weight_unit: str = "GRAMS",
    inventory_item_id: Optional[int] = None,
    tracked: bool = False,
    requires_shipping: bool = True,
    cost: Optional[str] = None,
) -> Dict[str, Any]:
    """ProductVariant node in the shape the snapshot query returns."""
    item_id = inventory_item_id or variant_id + 1000
    return {
        "id": f"gid://shopify/ProductVariant/{variant_id}",
        "title": "Default Title",
        "price": price,
        "compareAtPrice": compare_at_price,
        "sku": sku,
        "barcode": barcode,
        "inventoryItem": {
            "id": f"gid://shopify/InventoryItem/{item_id}",
            "tracked": tracked,
            "requiresShipping": requires_shipping,
            "unitCost": {"amount": cost, "currencyCode": "USD"} if cost else None,
            "measurement": {
                "weight": {"value": weight, "unit": weight_unit}
                if weight is not None else None
            },
        },
    }


def make_product(
    product_id: int,
    title: str = "Product",
    variants: Optional[List[Dict[str, Any]]] = None,
    **fields,
) -> Dict[str, Any]:
    """Product node in the shape the snapshot query returns."""
    node = {
        "id": f"gid://shopify/Product/{product_id}",
        "title": title,
        "descriptionHtml": "",
        "vendor": "",
        "productType": "",
        "status": "ACTIVE",
        "tags": [],
        "category": None,
        "variants": {"edges": [{"node": v} for v in (variants or [])]},
    }
    node.update(fields)
    return node


class FakeShopify:
    """
    Minimal Admin API: serves product snapshots and search, REST product
    and inventory item reads, accepts mutations and REST PUTs, and
    records every call.
    """

    def __init__(self):
        self.products: Dict[str, Dict[str, Any]] = {}
        self.rest_products: Dict[str, Dict[str, Any]] = {}
        self.rest_variants: Dict[str, Dict[str, Any]] = {}
        self.rest_inventory_items: Dict[str, Dict[str, Any]] = {}
        self.calls: List[Tuple[str, str, Any]] = []
        # Mutation names that answer with userErrors
        self.failing_mutations: set = set()
        # Operation name -> top-level GraphQL error messages
        self.graphql_errors: Dict[str, List[str]] = {}
        # (method, path) pairs that answer 422 with rest_errors
        self.failing_rest: set = set()
        self.rest_errors: Any = {"base": ["Request rejected"]}

    def add_product(self, node: Dict[str, Any]) -> None:
        self.products[node["id"].rsplit("/", 1)[-1]] = node

    def graphql_calls(self, name: str) -> List[Dict[str, Any]]:
        return [body for kind, op, body in self.calls if kind == "graphql" and op == name]

    def rest_calls(self, method: str, path: Optional[str] = None) -> List[Dict[str, Any]]:
        return [
            body for kind, op, body in self.calls
            if kind == method and (path is None or op == path)
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        path = request.url.path.split("/admin/api/", 1)[1].split("/", 1)[1]
        if path == "graphql.json":
            return self._graphql(body)
        if request.method == "GET" and request.url.params:
            body = dict(request.url.params)
        return self._rest(request.method, path, body)

    def _graphql(self, body: Dict[str, Any]) -> httpx.Response:
        name = OPERATION_NAME.search(body["query"]).group(1)
        variables = body.get("variables") or {}
        self.calls.append(("graphql", name, variables))

        if name in self.graphql_errors:
            return httpx.Response(
                200, json={"errors": [{"message": m} for m in self.graphql_errors[name]]}
            )

        if name == "productSnapshot":
            numeric_id = variables["id"].rsplit("/", 1)[-1]
            return httpx.Response(200, json={"data": {"product": self.products.get(numeric_id)}})

        if name == "productSearch":
            edges = [{"node": node, "cursor": key} for key, node in self.products.items()]
            return httpx.Response(200, json={"data": {"products": {
                "edges": edges,
                "pageInfo": {"hasNextPage": False, "endCursor": None},
            }}})

        if name in self.failing_mutations:
            payload = {"userErrors": [{"field": ["input"], "message": f"{name} rejected"}]}
        else:
            payload = {"userErrors": []}
        return httpx.Response(200, json={"data": {name: payload}})

    def _rest(self, method: str, path: str, body: Any) -> httpx.Response:
        self.calls.append((method, path, body))

        if (method, path) in self.failing_rest:
            return httpx.Response(422, json={"errors": self.rest_errors})

        if method == "GET" and path == "inventory_items.json":
            ids = body["ids"].split(",")
            return httpx.Response(200, json={"inventory_items": [
                self.rest_inventory_items[i] for i in ids if i in self.rest_inventory_items
            ]})

        match = re.fullmatch(r"products/(\d+)\.json", path)
        if method == "GET" and match:
            product = self.rest_products.get(match.group(1))
            if product is None:
                return httpx.Response(404, json={"errors": "Not Found"})
            return httpx.Response(200, json={"product": product})

        match = re.fullmatch(r"variants/(\d+)\.json", path)
        if match:
            variant = self.rest_variants.get(match.group(1))
            if variant is None:
                return httpx.Response(404, json={"errors": "Not Found"})
            if method == "PUT":
                variant.update(body["variant"])
            return httpx.Response(200, json={"variant": variant})

        if method == "PUT":
            # products/1.json -> "product", inventory_items/1.json -> "inventory_item"
            key = path.split("/", 1)[0].rstrip("s")
            return httpx.Response(200, json={key: body.get(key, body)})

        return httpx.Response(404, json={"errors": "Not Found"})


@pytest.fixture
def fake_shopify():
    return FakeShopify()


@pytest.fixture
def shopify_client(fake_shopify, monkeypatch):
    monkeypatch.setattr(ShopifyClient, "BASE_RETRY_DELAY", 0)
    return ShopifyClient(
        "test-store",
        "shpat_test",
        transport=httpx.MockTransport(fake_shopify.handler),
    )
