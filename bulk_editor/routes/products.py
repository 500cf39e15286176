"""
Product read API routes: filtered listing and tag collection.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form
from fastapi.responses import JSONResponse

from ..config import settings
from ..dependencies import get_shopify_client
from ..editor import (
    EditValidationError,
    build_search_query,
    collect_product_tags,
    filter_products,
)
from ..editor.requests import parse_product_ids
from ..shopify import ShopifyAuthError, ShopifyClient, ShopifyClientError, search_products

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products")


def error_response(status_code: int, error: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": str(error)})


@router.post("/filter")
async def filter_product_list(
    field: str = Form("title"),
    condition: str = Form("contains"),
    value: str = Form(""),
    limit: int = Form(250),
    client: ShopifyClient = Depends(get_shopify_client),
):
    """Search products remotely, then apply the exact filter locally."""
    try:
        query = build_search_query(field, condition, value)
    except EditValidationError as e:
        return error_response(400, e)

    try:
        candidates = await search_products(client, query, limit=max(1, min(limit, 250)))
    except ShopifyAuthError as e:
        logger.error(f"Shopify authentication failed: {e}")
        return error_response(401, e)
    except ShopifyClientError as e:
        logger.error(f"Product search failed: {e}")
        return error_response(502, e)

    products = filter_products(candidates, field, condition, value)
    logger.debug(f"Filter {field} {condition} {value!r}: {len(products)} of {len(candidates)}")

    return {
        "success": True,
        "products": [
            {
                "id": p.product_id,
                "title": p.title,
                "vendor": p.vendor,
                "productType": p.product_type,
                "status": p.status,
            }
            for p in products
        ],
    }


@router.post("/tags")
async def product_tags(
    productIds: Optional[str] = Form(None),
    client: ShopifyClient = Depends(get_shopify_client),
):
    """Sorted, distinct tags of the selected products (for the tag editor)."""
    try:
        product_ids = parse_product_ids(productIds)
    except EditValidationError as e:
        return error_response(400, e)

    try:
        tags = await collect_product_tags(client, product_ids, settings.max_concurrency)
    except ShopifyAuthError as e:
        logger.error(f"Shopify authentication failed: {e}")
        return error_response(401, e)
    except ShopifyClientError as e:
        logger.error(f"Reading product tags failed: {e}")
        return error_response(502, e)

    return {"success": True, "tags": tags}
