"""
Bulk edit API route.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from ..config import settings
from ..dependencies import get_shopify_client
from ..editor import (
    ActionType,
    EditValidationError,
    apply_bulk_field_update,
    parse_edit_request,
    preview_bulk_field_update,
)
from ..shopify import ShopifyAuthError, ShopifyClient, ShopifyClientError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/app")


class BulkEditResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    partial_failure: Optional[bool] = Field(None, alias="partialFailure")
    matched: Optional[int] = None
    summary: Optional[Dict[str, Any]] = None
    results: Optional[List[Dict[str, Any]]] = None


def error_response(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error},
    )


@router.post(
    "/bulk-edit",
    response_model=BulkEditResponse,
    response_model_exclude_none=True,
)
async def bulk_edit(
    request: Request,
    client: ShopifyClient = Depends(get_shopify_client),
):
    """Apply (or preview) one field edit across the selected products."""
    form = await request.form()

    try:
        edit = parse_edit_request(form)
    except EditValidationError as e:
        logger.info(f"Rejected bulk edit: {e}")
        return error_response(400, str(e))

    try:
        if edit.action is ActionType.PREVIEW:
            report = await preview_bulk_field_update(
                client, edit.product_ids, edit.editor, settings.max_concurrency
            )
            return BulkEditResponse(
                success=True,
                message=f"{report.matched} of {len(edit.product_ids)} products matched",
                matched=report.matched,
                summary=report.summary.to_dict(),
                results=[r.to_dict() for r in report.results],
            )

        report = await apply_bulk_field_update(
            client, edit.product_ids, edit.editor, settings.max_concurrency
        )
    except ShopifyAuthError as e:
        logger.error(f"Shopify authentication failed: {e}")
        return error_response(401, str(e))
    except ShopifyClientError as e:
        logger.error(f"Bulk {edit.section.value} edit failed: {e}")
        return error_response(502, str(e))

    if not report.success:
        return BulkEditResponse(
            success=False,
            error=report.error,
            summary=report.summary.to_dict(),
            results=[r.to_dict() for r in report.results],
        )

    return BulkEditResponse(
        success=True,
        message=report.message,
        partial_failure=report.summary.partial_failure or None,
        summary=report.summary.to_dict(),
        results=[r.to_dict() for r in report.results],
    )
