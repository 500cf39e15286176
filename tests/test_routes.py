"""
Tests for the HTTP routes.
"""

import json

import pytest
from fastapi.testclient import TestClient

from bulk_editor.dependencies import get_shopify_client
from bulk_editor.main import app
from tests.conftest import make_product, make_variant


@pytest.fixture
def client(shopify_client):
    app.dependency_overrides[get_shopify_client] = lambda: shopify_client
    # No context manager: the lifespan would build a client from settings
    yield TestClient(app)
    app.dependency_overrides.clear()


def bulk_edit_form(section, product_ids, **fields):
    data = {"section": section, "productIds": json.dumps(product_ids)}
    data.update(fields)
    return data


class TestBulkEditRoute:

    def test_full_success(self, client, fake_shopify):
        """Every target handled gives success without partialFailure."""
        fake_shopify.add_product(make_product(1, title="Big SALE Item"))
        fake_shopify.add_product(make_product(2, title="Regular Item"))

        response = client.post("/app/bulk-edit", data=bulk_edit_form(
            "title", ["1", "2"], actionType="bulkEdit", editType="removeText", textToAdd="SALE",
        ))

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert "partialFailure" not in body
        assert body["summary"]["successfulCount"] == 1
        assert body["summary"]["skippedCount"] == 1
        assert body["message"] == "Title updated successfully! 1 updated, 1 skipped."

    def test_preview_reports_matches(self, client, fake_shopify):
        """Preview reports matches and writes nothing."""
        fake_shopify.add_product(make_product(1, title="Big SALE Item"))
        fake_shopify.add_product(make_product(2, title="Regular Item"))

        response = client.post("/app/bulk-edit", data=bulk_edit_form(
            "title", ["1", "2"], actionType="preview", editType="removeText", textToAdd="SALE",
        ))

        body = response.json()
        assert body["matched"] == 1
        assert body["message"] == "1 of 2 products matched"
        assert fake_shopify.graphql_calls("productUpdate") == []

    def test_partial_failure(self, client, fake_shopify):
        """Some failures alongside successes set partialFailure."""
        fake_shopify.add_product(make_product(1, variants=[make_variant(11), make_variant(12)]))
        fake_shopify.failing_mutations.add("productVariantsBulkUpdate")
        fake_shopify.rest_variants["11"] = {"id": 11, "barcode": ""}
        fake_shopify.failing_rest.add(("PUT", "variants/12.json"))

        response = client.post("/app/bulk-edit", data=bulk_edit_form(
            "barcode", ["1"], barcodeValue="0123456789",
        ))

        body = response.json()
        assert body["success"] is True
        assert body["partialFailure"] is True
        assert body["summary"]["failedCount"] == 1

    def test_hard_failure(self, client, fake_shopify):
        """All targets failing gives success false with the reason."""
        fake_shopify.add_product(make_product(1, variants=[make_variant(11)]))
        fake_shopify.failing_mutations.add("productVariantsBulkUpdate")
        fake_shopify.failing_rest.add(("PUT", "variants/11.json"))

        response = client.post("/app/bulk-edit", data=bulk_edit_form(
            "sku", ["1"], skuAction="update", skuValue="NEW-1",
        ))

        body = response.json()
        assert body["success"] is False
        assert "rejected" in body["error"]
        assert "partialFailure" not in body

    def test_validation_error_is_400(self, client, fake_shopify):
        """Invalid edits are rejected before any remote call."""
        response = client.post("/app/bulk-edit", data=bulk_edit_form(
            "price", ["1"], editType="adjustPriceByPercentage",
            adjustmentType="increase", adjustmentAmount="150",
        ))

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert fake_shopify.calls == []


class TestFilterRoute:

    def test_filters_locally_after_search(self, client, fake_shopify):
        """The remote search is narrowed by the exact local filter."""
        fake_shopify.add_product(make_product(1, title="Big SALE Item"))
        fake_shopify.add_product(make_product(2, title="Regular Item"))

        response = client.post("/api/products/filter", data={
            "field": "title", "condition": "contains", "value": "sale",
        })

        body = response.json()
        assert [p["id"] for p in body["products"]] == ["1"]
        assert fake_shopify.graphql_calls("productSearch")[0]["query"] == "title:*sale*"

    def test_unknown_condition_is_400(self, client):
        """Unknown filter conditions are a client error."""
        response = client.post("/api/products/filter", data={
            "field": "title", "condition": "regex", "value": "x",
        })
        assert response.status_code == 400


class TestTagsRoute:

    def test_returns_sorted_distinct_tags(self, client, fake_shopify):
        """Tags of the selected products come back sorted and distinct."""
        fake_shopify.add_product(make_product(1, tags=["summer", "cotton"]))
        fake_shopify.add_product(make_product(2, tags=["cotton", "new"]))

        response = client.post("/api/products/tags", data={"productIds": json.dumps(["1", "2"])})

        assert response.status_code == 200
        assert response.json() == {"success": True, "tags": ["cotton", "new", "summer"]}

    def test_missing_product_ids_is_400(self, client, fake_shopify):
        """A request without products is rejected."""
        response = client.post("/api/products/tags", data={})

        assert response.status_code == 400
        assert response.json()["error"] == "No products selected"
        assert fake_shopify.calls == []

    def test_unknown_product_is_502(self, client):
        """A product that cannot be read is a gateway error."""
        response = client.post("/api/products/tags", data={"productIds": json.dumps(["404"])})

        assert response.status_code == 502
        assert response.json()["success"] is False


class TestHealth:

    def test_health(self, client):
        """Health check answers ok."""
        assert client.get("/health").json() == {"status": "ok"}
