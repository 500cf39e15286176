"""
Field transformations for bulk edits.

Each edit is an immutable value object validated on construction; `apply`
computes a new value from the current one and never touches its input.
"""

import re
from dataclasses import dataclass
from decimal import Decimal, ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from .validation import (
    EditValidationError,
    parse_decimal,
    parse_percentage,
    parse_positive_decimal,
)

CENTS = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------

class TextEditType(str, Enum):
    """Edits applicable to free-text fields (title, description, vendor...)."""
    ADD_BEGINNING = "addTextBeginning"
    ADD_END = "addTextEnd"
    REMOVE = "removeText"
    REPLACE = "replaceText"
    CAPITALIZE = "capitalize"
    TRUNCATE = "truncate"
    SET = "setText"


class Capitalization(str, Enum):
    TITLE_CASE = "titleCase"
    UPPERCASE = "uppercase"
    LOWERCASE = "lowercase"
    FIRST_LETTER = "firstLetter"


def capitalize(text: str, mode: Capitalization) -> str:
    """Apply one of the capitalization modes to `text`."""
    if mode is Capitalization.TITLE_CASE:
        return " ".join(
            word[:1].upper() + word[1:] for word in text.lower().split(" ")
        )
    if mode is Capitalization.UPPERCASE:
        return text.upper()
    if mode is Capitalization.LOWERCASE:
        return text.lower()
    return text[:1].upper() + text[1:].lower()


def _literal_pattern(text: str) -> "re.Pattern[str]":
    return re.compile(re.escape(text), re.IGNORECASE)


@dataclass(frozen=True)
class TextEdit:
    """A text transformation with its operands."""

    edit_type: TextEditType
    text: str = ""
    replacement: str = ""
    capitalization: Optional[Capitalization] = None
    length: int = 0

    def __post_init__(self):
        if self.edit_type in (
            TextEditType.ADD_BEGINNING,
            TextEditType.ADD_END,
            TextEditType.REMOVE,
            TextEditType.REPLACE,
        ) and not self.text:
            raise EditValidationError(
                f"Text is required for {self.edit_type.value}"
            )
        if self.edit_type is TextEditType.CAPITALIZE and self.capitalization is None:
            raise EditValidationError("Capitalization type is required")
        if self.edit_type is TextEditType.TRUNCATE and self.length <= 0:
            raise EditValidationError("Number of characters must be greater than 0")

    def apply(self, value: Optional[str]) -> str:
        current = value or ""

        if self.edit_type is TextEditType.ADD_BEGINNING:
            return f"{self.text} {current}"
        if self.edit_type is TextEditType.ADD_END:
            return f"{current} {self.text}"
        if self.edit_type is TextEditType.REMOVE:
            pattern = _literal_pattern(self.text)
            if not pattern.search(current):
                return current
            return pattern.sub("", current).strip()
        if self.edit_type is TextEditType.REPLACE:
            pattern = _literal_pattern(self.text)
            if not pattern.search(current):
                return current
            # Callable keeps backslashes in the replacement literal
            return pattern.sub(lambda _: self.replacement, current)
        if self.edit_type is TextEditType.CAPITALIZE:
            return capitalize(current, self.capitalization)
        if self.edit_type is TextEditType.TRUNCATE:
            return current[:self.length]
        return self.text


# ---------------------------------------------------------------------------
# Price
# ---------------------------------------------------------------------------

class PriceEditType(str, Enum):
    SET_PRICE = "setPrice"
    SET_COMPARE_AT_PRICE = "setCompareAtPrice"
    ADJUST_PRICE = "adjustPrice"
    ADJUST_PRICE_BY_PERCENTAGE = "adjustPriceByPercentage"
    ADJUST_COMPARE_AT_PRICE = "adjustCompareAtPrice"
    ADJUST_COMPARE_AT_PRICE_BY_PERCENTAGE = "adjustCompareAtPriceByPercentage"
    SET_PRICE_TO_COMPARE_AT_PERCENTAGE = "setPriceToCompareAtPercentage"
    SET_PRICE_TO_COMPARE_AT_PERCENTAGE_LESS = "setPriceToCompareAtPercentageLess"
    SET_COMPARE_AT_PRICE_TO_PRICE_PERCENTAGE = "setCompareAtPriceToPricePercentage"
    SET_COMPARE_AT_PRICE_TO_COST_PERCENTAGE = "setCompareAtPriceToCostPercentage"
    SET_PRICE_TO_COST_PERCENTAGE = "setPriceToCostPercentage"
    SET_PRICE_TO_COST_AND_SHIPPING_PERCENTAGE = "setPriceToCostAndShippingPercentage"
    REMOVE_COMPARE_AT_PRICE = "removeCompareAtPrice"
    ROUND_PRICE = "roundPrice"
    ROUND_COMPARE_AT_PRICE = "roundCompareAtPrice"


class AdjustmentDirection(str, Enum):
    INCREASE = "increase"
    DECREASE = "decrease"


class RoundingType(str, Enum):
    UPPER = "upper"
    LOWER = "lower"
    NEAREST = "nearest"


# Edits that write compareAtPrice instead of price
COMPARE_AT_EDITS = {
    PriceEditType.SET_COMPARE_AT_PRICE,
    PriceEditType.ADJUST_COMPARE_AT_PRICE,
    PriceEditType.ADJUST_COMPARE_AT_PRICE_BY_PERCENTAGE,
    PriceEditType.SET_COMPARE_AT_PRICE_TO_PRICE_PERCENTAGE,
    PriceEditType.SET_COMPARE_AT_PRICE_TO_COST_PERCENTAGE,
    PriceEditType.REMOVE_COMPARE_AT_PRICE,
    PriceEditType.ROUND_COMPARE_AT_PRICE,
}

# Price edits that may also move the old price into compareAtPrice
KEEPS_ORIGINAL_EDITS = {
    PriceEditType.ADJUST_PRICE,
    PriceEditType.ADJUST_PRICE_BY_PERCENTAGE,
    PriceEditType.SET_PRICE_TO_COMPARE_AT_PERCENTAGE,
    PriceEditType.SET_PRICE_TO_COMPARE_AT_PERCENTAGE_LESS,
}

PERCENTAGE_EDITS = {
    PriceEditType.ADJUST_PRICE_BY_PERCENTAGE,
    PriceEditType.ADJUST_COMPARE_AT_PRICE_BY_PERCENTAGE,
    PriceEditType.SET_PRICE_TO_COMPARE_AT_PERCENTAGE,
    PriceEditType.SET_PRICE_TO_COMPARE_AT_PERCENTAGE_LESS,
    PriceEditType.SET_COMPARE_AT_PRICE_TO_COST_PERCENTAGE,
}

# Edits computed from the inventory item cost
COST_EDITS = {
    PriceEditType.SET_PRICE_TO_COST_PERCENTAGE,
    PriceEditType.SET_PRICE_TO_COST_AND_SHIPPING_PERCENTAGE,
    PriceEditType.SET_COMPARE_AT_PRICE_TO_COST_PERCENTAGE,
}


def to_decimal(value) -> Optional[Decimal]:
    """Convert an API money string to Decimal, None if absent or invalid."""
    if value is None or value == "":
        return None
    try:
        number = Decimal(str(value))
    except Exception:
        return None
    return number if number.is_finite() else None


def format_money(value: Optional[Decimal]) -> Optional[str]:
    """Clamp at zero and format with two decimal places."""
    if value is None:
        return None
    return str(max(value, ZERO).quantize(CENTS, rounding=ROUND_HALF_UP))


def normalize_money(value) -> Optional[str]:
    """Normalize a money value for comparison ("60" == "60.00")."""
    number = to_decimal(value)
    if number is None:
        return None
    return str(number.quantize(CENTS, rounding=ROUND_HALF_UP))


def round_to_multiple(value: Decimal, multiple: int, rounding: RoundingType) -> Decimal:
    """Round the integer part of `value` to a multiple of `multiple`."""
    integer_part = value.to_integral_value(rounding=ROUND_FLOOR)
    steps = integer_part / Decimal(multiple)
    mode = {
        RoundingType.UPPER: ROUND_CEILING,
        RoundingType.LOWER: ROUND_FLOOR,
        RoundingType.NEAREST: ROUND_HALF_UP,
    }[rounding]
    return steps.quantize(Decimal("1"), rounding=mode) * multiple


@dataclass(frozen=True)
class PriceEdit:
    """A price/compare-at price transformation with its operands."""

    edit_type: PriceEditType
    amount: Optional[Decimal] = None
    direction: AdjustmentDirection = AdjustmentDirection.INCREASE
    set_compare_at_to_original: bool = False
    rounding: Optional[RoundingType] = None
    rounding_value: Optional[int] = None
    shipping_cost: Decimal = ZERO

    def __post_init__(self):
        edit_type = self.edit_type
        if edit_type in (PriceEditType.SET_PRICE, PriceEditType.SET_COMPARE_AT_PRICE):
            parse_decimal(self.amount, "price")
        elif edit_type in (
            PriceEditType.ADJUST_PRICE,
            PriceEditType.ADJUST_COMPARE_AT_PRICE,
        ):
            parse_positive_decimal(self.amount, "adjustment amount")
        elif edit_type in PERCENTAGE_EDITS:
            parse_percentage(self.amount)
        elif edit_type is PriceEditType.SET_COMPARE_AT_PRICE_TO_PRICE_PERCENTAGE:
            # 100% would divide by zero
            parse_percentage(self.amount, allow_hundred=False)
        elif edit_type in (
            PriceEditType.SET_PRICE_TO_COST_PERCENTAGE,
            PriceEditType.SET_PRICE_TO_COST_AND_SHIPPING_PERCENTAGE,
        ):
            parse_decimal(self.amount, "percentage")
            parse_decimal(self.shipping_cost, "shipping cost")
        elif edit_type in (PriceEditType.ROUND_PRICE, PriceEditType.ROUND_COMPARE_AT_PRICE):
            if self.rounding is None:
                raise EditValidationError("Rounding type is required")
            if not self.rounding_value or self.rounding_value <= 0:
                raise EditValidationError("Rounding value must be greater than 0")

    @property
    def writes_compare_at(self) -> bool:
        return self.edit_type in COMPARE_AT_EDITS

    @property
    def uses_cost(self) -> bool:
        return self.edit_type in COST_EDITS

    def _adjust(self, base: Decimal, by_percentage: bool) -> Decimal:
        delta = base * self.amount / HUNDRED if by_percentage else self.amount
        if self.direction is AdjustmentDirection.INCREASE:
            return base + delta
        return base - delta

    def apply(
        self,
        price: Optional[str],
        compare_at_price: Optional[str] = None,
        cost: Optional[str] = None,
    ) -> Dict[str, Optional[str]]:
        """
        Compute the fields to write for one variant.

        Returns:
            Dict with "price" and/or "compareAtPrice" keys; a None
            compareAtPrice clears it.
        """
        edit_type = self.edit_type
        current_price = to_decimal(price) or ZERO
        current_compare_at = to_decimal(compare_at_price)
        current_cost = to_decimal(cost) or ZERO
        # Compare-at based edits fall back to the price when compare-at is unset
        compare_base = current_compare_at or current_price
        percentage = (self.amount or ZERO) / HUNDRED

        if edit_type is PriceEditType.SET_COMPARE_AT_PRICE:
            return {"compareAtPrice": format_money(self.amount)}
        if edit_type is PriceEditType.REMOVE_COMPARE_AT_PRICE:
            return {"compareAtPrice": None}
        if edit_type is PriceEditType.ADJUST_COMPARE_AT_PRICE:
            return {"compareAtPrice": format_money(self._adjust(compare_base, False))}
        if edit_type is PriceEditType.ADJUST_COMPARE_AT_PRICE_BY_PERCENTAGE:
            return {"compareAtPrice": format_money(self._adjust(compare_base, True))}
        if edit_type is PriceEditType.SET_COMPARE_AT_PRICE_TO_PRICE_PERCENTAGE:
            return {"compareAtPrice": format_money(current_price / (1 - percentage))}
        if edit_type is PriceEditType.SET_COMPARE_AT_PRICE_TO_COST_PERCENTAGE:
            return {"compareAtPrice": format_money(current_cost * (1 + percentage))}
        if edit_type is PriceEditType.ROUND_COMPARE_AT_PRICE:
            base = current_compare_at or ZERO
            return {
                "compareAtPrice": format_money(
                    round_to_multiple(base, self.rounding_value, self.rounding)
                )
            }

        if edit_type is PriceEditType.SET_PRICE:
            new_price = self.amount
        elif edit_type is PriceEditType.ADJUST_PRICE:
            new_price = self._adjust(current_price, False)
        elif edit_type is PriceEditType.ADJUST_PRICE_BY_PERCENTAGE:
            new_price = self._adjust(current_price, True)
        elif edit_type is PriceEditType.SET_PRICE_TO_COMPARE_AT_PERCENTAGE:
            new_price = compare_base * percentage
        elif edit_type is PriceEditType.SET_PRICE_TO_COMPARE_AT_PERCENTAGE_LESS:
            new_price = compare_base - compare_base * percentage
        elif edit_type is PriceEditType.SET_PRICE_TO_COST_PERCENTAGE:
            new_price = current_cost * (1 + percentage)
        elif edit_type is PriceEditType.SET_PRICE_TO_COST_AND_SHIPPING_PERCENTAGE:
            new_price = (current_cost + self.shipping_cost) * (1 + percentage)
        elif edit_type is PriceEditType.ROUND_PRICE:
            new_price = round_to_multiple(current_price, self.rounding_value, self.rounding)
        else:
            raise EditValidationError(f"Unsupported price edit: {edit_type}")

        fields = {"price": format_money(new_price)}
        if self.set_compare_at_to_original and edit_type in KEEPS_ORIGINAL_EDITS:
            fields["compareAtPrice"] = format_money(current_price)
        return fields


# ---------------------------------------------------------------------------
# SKU
# ---------------------------------------------------------------------------

class SkuEditType(str, Enum):
    UPDATE = "update"
    REPLACE = "replace"
    FIND_REPLACE = "find_replace"
    ADD_PREFIX = "add_prefix"
    ADD_SUFFIX = "add_suffix"


@dataclass(frozen=True)
class SkuEdit:
    edit_type: SkuEditType
    value: str = ""
    find: str = ""
    replacement: str = ""

    def __post_init__(self):
        if self.edit_type is SkuEditType.FIND_REPLACE:
            if not self.find:
                raise EditValidationError("Missing required parameter: findText")
        elif not self.value:
            raise EditValidationError(
                f"Missing required parameter for SKU action: {self.edit_type.value}"
            )

    def apply(self, value: Optional[str]) -> str:
        current = value or ""
        if self.edit_type in (SkuEditType.UPDATE, SkuEditType.REPLACE):
            return self.value
        if self.edit_type is SkuEditType.FIND_REPLACE:
            return current.replace(self.find, self.replacement)
        if self.edit_type is SkuEditType.ADD_PREFIX:
            return self.value + current
        return current + self.value


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------

class TagEditType(str, Enum):
    ADD = "add_tags"
    REMOVE = "remove"
    REPLACE = "replace"
    FIND_REPLACE = "find_replace"


def split_tags(value: Optional[str]) -> Tuple[str, ...]:
    """Split a comma-separated tag list, dropping blanks."""
    if not value:
        return ()
    return tuple(tag.strip() for tag in value.split(",") if tag.strip())


def _unique(tags: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for tag in tags:
        if tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result


@dataclass(frozen=True)
class TagEdit:
    edit_type: TagEditType
    tags: Tuple[str, ...] = ()
    find_tags: Tuple[str, ...] = ()
    replace_tags: Tuple[str, ...] = ()

    def __post_init__(self):
        if self.edit_type in (TagEditType.ADD, TagEditType.REPLACE) and not self.tags:
            raise EditValidationError("At least one tag is required")
        if self.edit_type is TagEditType.FIND_REPLACE and not self.find_tags:
            raise EditValidationError("Missing required parameter: findTags")

    def apply(self, value: Optional[List[str]]) -> List[str]:
        current = list(value or [])
        if self.edit_type is TagEditType.ADD:
            return _unique(current + list(self.tags))
        if self.edit_type is TagEditType.REMOVE:
            # No listed tags means remove all
            if not self.tags:
                return []
            return [tag for tag in current if tag not in self.tags]
        if self.edit_type is TagEditType.REPLACE:
            return _unique(self.tags)
        kept = [tag for tag in current if tag not in self.find_tags]
        return _unique(kept + list(self.replace_tags))


def normalize_tags(value: Optional[List[str]]) -> Tuple[str, ...]:
    """Tags compare as an unordered set."""
    return tuple(sorted(set(value or [])))


# ---------------------------------------------------------------------------
# Weight
# ---------------------------------------------------------------------------

WEIGHT_UNITS = ("g", "kg", "oz", "lb")


def format_number(value) -> str:
    """Format a number without exponent or trailing zeros ("500.0" -> "500")."""
    number = to_decimal(value)
    if number is None:
        return "0"
    if number == number.to_integral_value():
        return str(number.quantize(Decimal("1")))
    return format(number.normalize(), "f")


@dataclass(frozen=True)
class WeightEdit:
    """Set the weight unit, and optionally the weight value."""

    unit: str
    value: Optional[Decimal] = None

    def __post_init__(self):
        if self.unit not in WEIGHT_UNITS:
            raise EditValidationError(
                "Missing or invalid required parameter: weightUnit "
                "(must be one of 'g', 'kg', 'oz', 'lb')"
            )
        if self.value is not None and self.value < 0:
            raise EditValidationError("Invalid weight value: must be a positive number")

    @property
    def unit_only(self) -> bool:
        return self.value is None

    def apply(self, weight: Optional[str], unit: Optional[str]) -> Tuple[str, str]:
        new_weight = weight if self.unit_only else self.value
        return format_number(new_weight), self.unit

