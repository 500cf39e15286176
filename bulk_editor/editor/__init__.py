"""
Editor package: filters, field transforms and bulk update orchestration.
"""

from .validation import EditValidationError
from .filters import FilterField, FilterCondition, build_search_query, filter_products
from .fields import FieldEditor
from .orchestrator import (
    UpdateStatus,
    UpdateResult,
    ProductResult,
    BatchSummary,
    BatchReport,
    apply_bulk_field_update,
    preview_bulk_field_update,
    collect_product_tags,
)
from .requests import ActionType, Section, EditRequest, parse_edit_request

__all__ = [
    "EditValidationError",
    "FilterField",
    "FilterCondition",
    "build_search_query",
    "filter_products",
    "FieldEditor",
    "UpdateStatus",
    "UpdateResult",
    "ProductResult",
    "BatchSummary",
    "BatchReport",
    "apply_bulk_field_update",
    "preview_bulk_field_update",
    "collect_product_tags",
    "ActionType",
    "Section",
    "EditRequest",
    "parse_edit_request",
]
