"""
Product filtering: the remote search query and the local predicate.
"""

from enum import Enum
from typing import List, Optional

from ..shopify.ids import extract_numeric_id
from ..shopify.products import ProductSnapshot
from .validation import EditValidationError, parse_enum


class FilterField(str, Enum):
    TITLE = "title"
    DESCRIPTION = "description"
    PRODUCT_ID = "productId"


class FilterCondition(str, Enum):
    IS = "is"
    CONTAINS = "contains"
    DOES_NOT_CONTAIN = "doesNotContain"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    EMPTY = "empty"


# Product search syntax field names
SEARCH_FIELDS = {
    FilterField.TITLE: "title",
    FilterField.DESCRIPTION: "description",
    FilterField.PRODUCT_ID: "id",
}


def parse_filter(field, condition):
    """
    Validate a field/condition pair.

    Raises:
        EditValidationError: If either is not recognised
    """
    return (
        parse_enum(FilterField, field, "filter field"),
        parse_enum(FilterCondition, condition, "filter condition"),
    )


def build_search_query(field, condition, value: Optional[str]) -> str:
    """
    Build the product search string that narrows results remotely.

    An empty string means no remote narrowing; `filter_products` then
    does the exact match locally.
    """
    field, condition = parse_filter(field, condition)
    text = (value or "").replace('"', "").replace("'", "").strip()

    if condition is FilterCondition.EMPTY or not text:
        return ""

    name = SEARCH_FIELDS[field]
    if field is FilterField.PRODUCT_ID:
        try:
            text = extract_numeric_id(text)
        except ValueError:
            raise EditValidationError(f"Invalid product ID: {value!r}")

    if condition is FilterCondition.IS:
        return f"{name}:'{text}'"
    if condition is FilterCondition.DOES_NOT_CONTAIN:
        return f"-{name}:*{text}*"
    return f"{name}:*{text}*"


def _field_value(product: ProductSnapshot, field: FilterField) -> Optional[str]:
    if field is FilterField.TITLE:
        return product.title
    if field is FilterField.DESCRIPTION:
        return product.description_html
    return product.product_id


def matches(product: ProductSnapshot, field, condition, value: Optional[str]) -> bool:
    """Case-insensitive predicate for one product."""
    field, condition = parse_filter(field, condition)
    current = _field_value(product, field)

    if condition is FilterCondition.EMPTY:
        return current is None or not current.strip()

    haystack = (current or "").lower()
    needle = (value or "").strip().lower()
    if field is FilterField.PRODUCT_ID and needle.startswith("gid://"):
        needle = needle.rsplit("/", 1)[-1]

    if condition is FilterCondition.IS:
        return haystack == needle
    if condition is FilterCondition.CONTAINS:
        return needle in haystack
    if condition is FilterCondition.DOES_NOT_CONTAIN:
        return needle not in haystack
    if condition is FilterCondition.STARTS_WITH:
        return haystack.startswith(needle)
    return haystack.endswith(needle)


def filter_products(
    products: List[ProductSnapshot],
    field,
    condition,
    value: Optional[str] = None,
) -> List[ProductSnapshot]:
    """
    Return the products that satisfy the condition, in input order.

    Raises:
        EditValidationError: On an unknown field or condition
    """
    field, condition = parse_filter(field, condition)
    return [p for p in products if matches(p, field, condition, value)]
