"""
Tests for field transformations.
"""

import pytest
from decimal import Decimal

from bulk_editor.editor.transforms import (
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
    format_money,
    format_number,
    normalize_tags,
    round_to_multiple,
)
from bulk_editor.editor.validation import EditValidationError


class TestTextEdit:
    """Tests for free-text edits."""

    def test_add_text_beginning_and_end(self):
        """Added text is joined with a single space."""
        assert TextEdit(TextEditType.ADD_BEGINNING, text="New").apply("Shirt") == "New Shirt"
        assert TextEdit(TextEditType.ADD_END, text="XL").apply("Shirt") == "Shirt XL"

    def test_remove_text_is_case_insensitive_and_trims(self):
        """Removal ignores case and trims only the ends."""
        edit = TextEdit(TextEditType.REMOVE, text="sale")
        assert edit.apply("SALE Summer Shirt") == "Summer Shirt"
        assert edit.apply("Big SALE Item") == "Big  Item"

    def test_remove_text_without_match_leaves_value(self):
        """No match leaves the value untouched, whitespace included."""
        edit = TextEdit(TextEditType.REMOVE, text="SALE")
        assert edit.apply(" Regular Item ") == " Regular Item "

    def test_replace_text_is_literal(self):
        """Find and replace treats both strings literally."""
        edit = TextEdit(TextEditType.REPLACE, text="(old)", replacement=r"\1 new")
        assert edit.apply("Lamp (OLD)") == r"Lamp \1 new"

    @pytest.mark.parametrize("mode,expected", [
        (Capitalization.TITLE_CASE, "Blue Cotton Shirt"),
        (Capitalization.UPPERCASE, "BLUE COTTON SHIRT"),
        (Capitalization.LOWERCASE, "blue cotton shirt"),
        (Capitalization.FIRST_LETTER, "Blue cotton shirt"),
    ])
    def test_capitalize(self, mode, expected):
        """Each capitalization mode."""
        edit = TextEdit(TextEditType.CAPITALIZE, capitalization=mode)
        assert edit.apply("bLUE cotton SHIRT") == expected

    def test_truncate(self):
        """Truncation keeps the first N characters."""
        assert TextEdit(TextEditType.TRUNCATE, length=4).apply("Keyboard") == "Keyb"

    def test_apply_does_not_need_current_value(self):
        """A missing current value counts as empty."""
        assert TextEdit(TextEditType.ADD_END, text="XL").apply(None) == " XL"

    def test_missing_operands_are_rejected(self):
        """Edits without their required operand fail on construction."""
        with pytest.raises(EditValidationError):
            TextEdit(TextEditType.REMOVE)
        with pytest.raises(EditValidationError):
            TextEdit(TextEditType.CAPITALIZE)
        with pytest.raises(EditValidationError):
            TextEdit(TextEditType.TRUNCATE, length=0)


class TestPriceEdit:
    """Tests for price and compare-at price edits."""

    def test_set_price(self):
        """Fixed prices are quantised to cents."""
        edit = PriceEdit(PriceEditType.SET_PRICE, amount=Decimal("19.5"))
        assert edit.apply("10.00") == {"price": "19.50"}

    def test_adjust_price_decrease_clamps_at_zero(self):
        """Decreases never go below zero."""
        edit = PriceEdit(
            PriceEditType.ADJUST_PRICE,
            amount=Decimal("15"),
            direction=AdjustmentDirection.DECREASE,
        )
        assert edit.apply("10.00") == {"price": "0.00"}

    def test_adjust_price_by_percentage_keeps_original_as_compare_at(self):
        """The old price can move into compare-at."""
        edit = PriceEdit(
            PriceEditType.ADJUST_PRICE_BY_PERCENTAGE,
            amount=Decimal("10"),
            direction=AdjustmentDirection.INCREASE,
            set_compare_at_to_original=True,
        )
        assert edit.apply("20.00", "25.00") == {"price": "22.00", "compareAtPrice": "20.00"}

    def test_adjust_compare_at_falls_back_to_price(self):
        """Unset compare-at adjusts from the price."""
        edit = PriceEdit(PriceEditType.ADJUST_COMPARE_AT_PRICE, amount=Decimal("5"))
        assert edit.apply("20.00", None) == {"compareAtPrice": "25.00"}

    def test_set_price_to_compare_at_percentage(self):
        """Price as a percentage of compare-at."""
        edit = PriceEdit(PriceEditType.SET_PRICE_TO_COMPARE_AT_PERCENTAGE, amount=Decimal("80"))
        assert edit.apply("90.00", "100.00") == {"price": "80.00"}

    def test_set_price_to_compare_at_percentage_less(self):
        """Price as compare-at minus a percentage."""
        edit = PriceEdit(
            PriceEditType.SET_PRICE_TO_COMPARE_AT_PERCENTAGE_LESS, amount=Decimal("25")
        )
        assert edit.apply("90.00", "100.00") == {"price": "75.00"}

    def test_set_compare_at_to_price_percentage(self):
        """Compare-at such that price is N% off."""
        edit = PriceEdit(
            PriceEditType.SET_COMPARE_AT_PRICE_TO_PRICE_PERCENTAGE, amount=Decimal("20")
        )
        assert edit.apply("80.00") == {"compareAtPrice": "100.00"}

    def test_set_compare_at_to_price_percentage_rejects_hundred(self):
        """100% off would divide by zero."""
        with pytest.raises(EditValidationError):
            PriceEdit(
                PriceEditType.SET_COMPARE_AT_PRICE_TO_PRICE_PERCENTAGE, amount=Decimal("100")
            )

    def test_cost_based_prices(self):
        """Markup on cost, with and without shipping."""
        markup = PriceEdit(PriceEditType.SET_PRICE_TO_COST_PERCENTAGE, amount=Decimal("50"))
        assert markup.apply("1.00", cost="10.00") == {"price": "15.00"}

        with_shipping = PriceEdit(
            PriceEditType.SET_PRICE_TO_COST_AND_SHIPPING_PERCENTAGE,
            amount=Decimal("50"),
            shipping_cost=Decimal("2"),
        )
        assert with_shipping.apply("1.00", cost="10.00") == {"price": "18.00"}

    def test_cost_based_edits_are_flagged(self):
        """Only the three cost-based edits report uses_cost."""
        assert PriceEdit(PriceEditType.SET_PRICE_TO_COST_PERCENTAGE, amount=Decimal("50")).uses_cost
        assert PriceEdit(
            PriceEditType.SET_COMPARE_AT_PRICE_TO_COST_PERCENTAGE, amount=Decimal("50")
        ).uses_cost
        assert not PriceEdit(PriceEditType.SET_PRICE, amount=Decimal("5")).uses_cost

    def test_remove_compare_at_price(self):
        """Removal clears compare-at."""
        edit = PriceEdit(PriceEditType.REMOVE_COMPARE_AT_PRICE)
        assert edit.apply("10.00", "20.00") == {"compareAtPrice": None}

    def test_round_price_nearest(self):
        """Rounding works on the whole-unit part of the price."""
        edit = PriceEdit(
            PriceEditType.ROUND_PRICE,
            rounding=RoundingType.NEAREST,
            rounding_value=5,
        )
        # floor(17.99) = 17, 17 / 5 = 3.4 -> 3 * 5
        assert edit.apply("17.99") == {"price": "15.00"}
        # floor(17.5) = 17 as well; the fraction never counts
        assert edit.apply("17.50") == {"price": "15.00"}

    @pytest.mark.parametrize("amount", ["0", "-5"])
    def test_non_positive_adjustment_rejected(self, amount):
        """Adjustments must be positive."""
        with pytest.raises(EditValidationError):
            PriceEdit(PriceEditType.ADJUST_PRICE, amount=Decimal(amount))

    @pytest.mark.parametrize("amount", ["0", "101"])
    def test_percentage_out_of_range_rejected(self, amount):
        """Percentages outside (0, 100] are rejected."""
        with pytest.raises(EditValidationError):
            PriceEdit(PriceEditType.ADJUST_PRICE_BY_PERCENTAGE, amount=Decimal(amount))

    def test_rounding_value_must_be_positive(self):
        """Rounding to a zero multiple is rejected."""
        with pytest.raises(EditValidationError):
            PriceEdit(PriceEditType.ROUND_PRICE, rounding=RoundingType.UPPER, rounding_value=0)


class TestMoneyHelpers:

    def test_format_money_rounds_half_up(self):
        """Money rounds half up and clamps at zero."""
        assert format_money(Decimal("2.005")) == "2.01"
        assert format_money(Decimal("-3")) == "0.00"
        assert format_money(None) is None

    @pytest.mark.parametrize("rounding,expected", [
        (RoundingType.UPPER, Decimal("20")),
        (RoundingType.LOWER, Decimal("10")),
        (RoundingType.NEAREST, Decimal("20")),
    ])
    def test_round_to_multiple(self, rounding, expected):
        """Upper, lower and nearest multiples."""
        assert round_to_multiple(Decimal("15.99"), 10, rounding) == expected


class TestSkuEdit:

    def test_operations(self):
        """Update, prefix, suffix and case-sensitive find/replace."""
        assert SkuEdit(SkuEditType.UPDATE, value="NEW-1").apply("OLD") == "NEW-1"
        assert SkuEdit(SkuEditType.ADD_PREFIX, value="X-").apply("100") == "X-100"
        assert SkuEdit(SkuEditType.ADD_SUFFIX, value="-B").apply("100") == "100-B"
        edit = SkuEdit(SkuEditType.FIND_REPLACE, find="AB", replacement="CD")
        assert edit.apply("AB-ab-AB") == "CD-ab-CD"

    def test_find_replace_requires_find_text(self):
        """Find/replace needs the text to find."""
        with pytest.raises(EditValidationError):
            SkuEdit(SkuEditType.FIND_REPLACE)


class TestTagEdit:

    def test_add_tags_deduplicates_in_order(self):
        """Added tags keep order and are not repeated."""
        edit = TagEdit(TagEditType.ADD, tags=("summer", "new"))
        assert edit.apply(["new", "cotton"]) == ["new", "cotton", "summer"]

    def test_remove_all_when_no_tags_listed(self):
        """Remove with no tags clears them all."""
        assert TagEdit(TagEditType.REMOVE).apply(["a", "b"]) == []
        assert TagEdit(TagEditType.REMOVE, tags=("a",)).apply(["a", "b"]) == ["b"]

    def test_find_replace(self):
        """Found tags are dropped and replacements appended."""
        edit = TagEdit(TagEditType.FIND_REPLACE, find_tags=("old",), replace_tags=("new",))
        assert edit.apply(["old", "keep"]) == ["keep", "new"]

    def test_tags_compare_as_sets(self):
        """Order and duplicates do not matter for comparison."""
        assert normalize_tags(["b", "a", "a"]) == normalize_tags(["a", "b"])


class TestWeightEdit:

    def test_value_and_unit(self):
        """Value and unit are both replaced."""
        assert WeightEdit(unit="kg", value=Decimal("1.50")).apply("500", "g") == ("1.5", "kg")

    def test_unit_only_keeps_weight(self):
        """Unit-only keeps the current value."""
        edit = WeightEdit(unit="kg")
        assert edit.unit_only
        assert edit.apply("500.0", "g") == ("500", "kg")

    def test_invalid_unit_rejected(self):
        """Units outside g, kg, oz and lb are rejected."""
        with pytest.raises(EditValidationError):
            WeightEdit(unit="stone")

    def test_format_number(self):
        """Trailing zeros are dropped."""
        assert format_number("500.0") == "500"
        assert format_number(0.25) == "0.25"
        assert format_number(None) == "0"


class TestIdempotence:
    """Applying a deterministic edit twice changes nothing the second time."""

    def test_text_set_twice(self):
        """Setting text twice gives the same value."""
        edit = TextEdit(TextEditType.SET, text="Lamp")
        assert edit.apply(edit.apply("Old")) == edit.apply("Old")

    def test_set_price_twice(self):
        """Setting a price twice gives the same price."""
        edit = PriceEdit(PriceEditType.SET_PRICE, amount=Decimal("12"))
        first = edit.apply("10.00")
        assert edit.apply(first["price"]) == first

    def test_truncate_twice(self):
        """Truncating an already short value leaves it alone."""
        edit = TextEdit(TextEditType.TRUNCATE, length=4)
        once = edit.apply("Keyboard")
        assert edit.apply(once) == once == "Keyb"

    @pytest.mark.parametrize("mode", list(Capitalization))
    def test_capitalize_twice(self, mode):
        """Each capitalization is stable on its own output."""
        edit = TextEdit(TextEditType.CAPITALIZE, capitalization=mode)
        once = edit.apply("bLUE cotton SHIRT")
        assert edit.apply(once) == once

    @pytest.mark.parametrize("edit", [
        WeightEdit(unit="kg", value=Decimal("1.50")),
        WeightEdit(unit="lb"),
    ])
    def test_weight_conversion_twice(self, edit):
        """Re-applying a weight edit to its output changes nothing."""
        once = edit.apply("500.0", "g")
        assert edit.apply(*once) == once
