"""
Parse bulk edit form submissions into validated edit requests.

All operand validation happens here, before any remote call.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..shopify.ids import normalize_product_id, to_gid
from .fields import (
    BarcodeEditor,
    CategoryEditor,
    CostEditor,
    DescriptionEditor,
    FieldEditor,
    PriceEditor,
    ProductTypeEditor,
    RequiresShippingEditor,
    SkuEditor,
    StatusEditor,
    TagsEditor,
    TitleEditor,
    TracksInventoryEditor,
    VendorEditor,
    WeightEditor,
)
from .transforms import (
    AdjustmentDirection,
    Capitalization,
    PriceEdit,
    PriceEditType,
    RoundingType,
    SkuEdit,
    SkuEditType,
    TagEdit,
    TagEditType,
    TextEdit,
    TextEditType,
    WeightEdit,
)
from .validation import (
    EditValidationError,
    parse_bool,
    parse_decimal,
    parse_enum,
    parse_positive_int,
    require_text,
)


class ActionType(str, Enum):
    BULK_EDIT = "bulkEdit"
    PREVIEW = "preview"


class Section(str, Enum):
    TITLE = "title"
    DESCRIPTION = "description"
    VENDOR = "vendor"
    PRODUCT_TYPE = "productType"
    STATUS = "status"
    TAGS = "tags"
    PRODUCT_CATEGORY = "productCategory"
    PRICE = "price"
    SKU = "sku"
    BARCODE = "barcode"
    VARIANT_WEIGHT = "variantWeight"
    COST_PER_ITEM = "costPerItem"
    TRACKS_INVENTORY = "tracksInventory"
    REQUIRES_SHIPPING = "requiresShipping"


PRODUCT_STATUSES = ("ACTIVE", "DRAFT", "ARCHIVED")

# Short edit type names the description form uses
DESCRIPTION_EDIT_ALIASES = {
    "addBeginning": TextEditType.ADD_BEGINNING,
    "addEnd": TextEditType.ADD_END,
    "remove": TextEditType.REMOVE,
    "replace": TextEditType.REPLACE,
}


@dataclass
class EditRequest:
    """A validated bulk edit: which products, which field, which edit."""
    action: ActionType
    section: Section
    product_ids: List[str]
    editor: FieldEditor


Form = Mapping[str, Any]


def _get(form: Form, name: str) -> Optional[str]:
    value = form.get(name)
    if value is None:
        return None
    return str(value)


def parse_product_ids(raw: Optional[str]) -> List[str]:
    """
    Parse the JSON list of product IDs (numeric or gid).

    Raises:
        EditValidationError: If missing, not a JSON list, empty, or
            containing an ID without a numeric part
    """
    if not raw:
        raise EditValidationError("No products selected")
    try:
        values = json.loads(raw)
    except ValueError:
        raise EditValidationError("Invalid product IDs format")
    if not isinstance(values, list):
        raise EditValidationError("Invalid product IDs format")
    if not values:
        raise EditValidationError("No products selected")

    product_ids = []
    for value in values:
        try:
            product_ids.append(normalize_product_id(value))
        except ValueError:
            raise EditValidationError(f"Invalid product ID: {value!r}")
    return product_ids


def _text_edit(form: Form, edit_type: TextEditType, text: Optional[str]) -> TextEdit:
    capitalization = None
    length = 0
    if edit_type is TextEditType.CAPITALIZE:
        capitalization = parse_enum(
            Capitalization, _get(form, "capitalizationType"), "capitalizationType"
        )
    elif edit_type is TextEditType.TRUNCATE:
        length = parse_positive_int(_get(form, "numberOfCharacters"), "numberOfCharacters")
    return TextEdit(
        edit_type=edit_type,
        text=text or "",
        replacement=_get(form, "replacementText") or "",
        capitalization=capitalization,
        length=length,
    )


def _title_editor(form: Form) -> FieldEditor:
    edit_type = parse_enum(TextEditType, _get(form, "editType"), "editType")
    return TitleEditor(_text_edit(form, edit_type, _get(form, "textToAdd")))


def _description_editor(form: Form) -> FieldEditor:
    raw = _get(form, "editType")
    edit_type = DESCRIPTION_EDIT_ALIASES.get(raw) or parse_enum(TextEditType, raw, "editType")
    if edit_type in (TextEditType.REMOVE, TextEditType.REPLACE):
        text = _get(form, "textToRemove")
        replacement = _get(form, "textToAdd") or _get(form, "replacementText") or ""
        return DescriptionEditor(
            TextEdit(edit_type=edit_type, text=text or "", replacement=replacement)
        )
    return DescriptionEditor(_text_edit(form, edit_type, _get(form, "textToAdd")))


def _vendor_editor(form: Form) -> FieldEditor:
    edit_type = _get(form, "editType")
    if edit_type == "updateVendor":
        vendor = require_text(_get(form, "newVendor"), "newVendor")
        return VendorEditor(TextEdit(TextEditType.SET, text=vendor.strip()))
    if edit_type == "capitalizeVendor":
        return VendorEditor(_text_edit(form, TextEditType.CAPITALIZE, None))
    raise EditValidationError(
        f"Invalid editType: {edit_type!r} (must be one of updateVendor, capitalizeVendor)"
    )


def _product_type_editor(form: Form) -> FieldEditor:
    product_type = require_text(_get(form, "newProductType"), "newProductType")
    return ProductTypeEditor(TextEdit(TextEditType.SET, text=product_type.strip()))


def _status_editor(form: Form) -> FieldEditor:
    status = require_text(_get(form, "newStatus"), "newStatus").strip().upper()
    if status not in PRODUCT_STATUSES:
        raise EditValidationError(
            f"Invalid newStatus: must be one of {', '.join(PRODUCT_STATUSES)}"
        )
    return StatusEditor(TextEdit(TextEditType.SET, text=status))


def _split(value: Optional[str]) -> tuple:
    if not value:
        return ()
    return tuple(tag.strip() for tag in value.split(",") if tag.strip())


def _tags_editor(form: Form) -> FieldEditor:
    edit_type = parse_enum(TagEditType, _get(form, "tagAction"), "tagAction")
    return TagsEditor(TagEdit(
        edit_type=edit_type,
        tags=_split(_get(form, "tags")),
        find_tags=_split(_get(form, "findTags")),
        replace_tags=_split(_get(form, "replaceTags")),
    ))


def _category_editor(form: Form) -> FieldEditor:
    category = require_text(_get(form, "newProductCategory"), "newProductCategory").strip()
    return CategoryEditor(TextEdit(TextEditType.SET, text=to_gid("TaxonomyCategory", category)))


def _price_editor(form: Form) -> FieldEditor:
    edit_type = parse_enum(PriceEditType, _get(form, "editType"), "editType")

    amount = None
    if edit_type in (PriceEditType.SET_PRICE, PriceEditType.SET_COMPARE_AT_PRICE):
        amount = parse_decimal(_get(form, "newPrice"), "newPrice")
    elif edit_type not in (
        PriceEditType.REMOVE_COMPARE_AT_PRICE,
        PriceEditType.ROUND_PRICE,
        PriceEditType.ROUND_COMPARE_AT_PRICE,
    ):
        amount = parse_decimal(_get(form, "adjustmentAmount"), "adjustmentAmount")

    direction = AdjustmentDirection.INCREASE
    if edit_type in (
        PriceEditType.ADJUST_PRICE,
        PriceEditType.ADJUST_PRICE_BY_PERCENTAGE,
        PriceEditType.ADJUST_COMPARE_AT_PRICE,
        PriceEditType.ADJUST_COMPARE_AT_PRICE_BY_PERCENTAGE,
    ):
        direction = parse_enum(
            AdjustmentDirection, _get(form, "adjustmentType"), "adjustmentType"
        )

    rounding = None
    rounding_value = None
    if edit_type in (PriceEditType.ROUND_PRICE, PriceEditType.ROUND_COMPARE_AT_PRICE):
        rounding = parse_enum(RoundingType, _get(form, "roundingType"), "roundingType")
        rounding_value = parse_positive_int(_get(form, "roundingValue"), "roundingValue")

    shipping_cost = parse_decimal(_get(form, "shippingCost") or "0", "shippingCost")

    return PriceEditor(PriceEdit(
        edit_type=edit_type,
        amount=amount,
        direction=direction,
        set_compare_at_to_original=_get(form, "setCompareAtPriceToOriginal") == "true",
        rounding=rounding,
        rounding_value=rounding_value,
        shipping_cost=shipping_cost,
    ))


def _sku_editor(form: Form) -> FieldEditor:
    edit_type = parse_enum(SkuEditType, _get(form, "skuAction"), "skuAction")
    value_field = {
        SkuEditType.UPDATE: "skuValue",
        SkuEditType.REPLACE: "skuValue",
        SkuEditType.ADD_PREFIX: "prefix",
        SkuEditType.ADD_SUFFIX: "suffix",
    }.get(edit_type)
    return SkuEditor(SkuEdit(
        edit_type=edit_type,
        value=(_get(form, value_field) or "") if value_field else "",
        find=_get(form, "findText") or "",
        replacement=_get(form, "replaceText") or "",
    ))


def _barcode_editor(form: Form) -> FieldEditor:
    barcode = require_text(_get(form, "barcodeValue"), "barcodeValue")
    return BarcodeEditor(barcode.strip())


def _weight_editor(form: Form) -> FieldEditor:
    raw_value = _get(form, "weightValue")
    value = None
    if raw_value is not None and raw_value.strip() != "":
        value = parse_decimal(raw_value, "weightValue")
    return WeightEditor(WeightEdit(unit=_get(form, "weightUnit") or "", value=value))


def _cost_editor(form: Form) -> FieldEditor:
    return CostEditor(parse_decimal(_get(form, "costValue"), "costValue"))


def _tracks_inventory_editor(form: Form) -> FieldEditor:
    return TracksInventoryEditor(parse_bool(_get(form, "tracksInventory"), "tracksInventory"))


def _requires_shipping_editor(form: Form) -> FieldEditor:
    return RequiresShippingEditor(
        parse_bool(_get(form, "requiresShipping"), "requiresShipping")
    )


EDITOR_BUILDERS: Dict[Section, Callable[[Form], FieldEditor]] = {
    Section.TITLE: _title_editor,
    Section.DESCRIPTION: _description_editor,
    Section.VENDOR: _vendor_editor,
    Section.PRODUCT_TYPE: _product_type_editor,
    Section.STATUS: _status_editor,
    Section.TAGS: _tags_editor,
    Section.PRODUCT_CATEGORY: _category_editor,
    Section.PRICE: _price_editor,
    Section.SKU: _sku_editor,
    Section.BARCODE: _barcode_editor,
    Section.VARIANT_WEIGHT: _weight_editor,
    Section.COST_PER_ITEM: _cost_editor,
    Section.TRACKS_INVENTORY: _tracks_inventory_editor,
    Section.REQUIRES_SHIPPING: _requires_shipping_editor,
}


def build_editor(section, form: Form) -> FieldEditor:
    """Build the field editor for `section` from the form operands."""
    section = parse_enum(Section, section, "section")
    return EDITOR_BUILDERS[section](form)


def parse_edit_request(form: Form) -> EditRequest:
    """
    Parse and validate a bulk edit form.

    Raises:
        EditValidationError: On any missing or invalid field
    """
    action = parse_enum(ActionType, _get(form, "actionType") or ActionType.BULK_EDIT.value, "actionType")
    section = parse_enum(Section, _get(form, "section"), "section")
    product_ids = parse_product_ids(_get(form, "productIds"))
    editor = build_editor(section, form)
    return EditRequest(
        action=action,
        section=section,
        product_ids=product_ids,
        editor=editor,
    )
