"""
Operand validation for edit requests.

Every check here runs before any remote call is made.
"""

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional, Type, TypeVar

E = TypeVar("E", bound=Enum)


class EditValidationError(ValueError):
    """An edit request operand is missing or invalid."""
    pass


def require_text(value: Optional[str], name: str) -> str:
    """Return `value` or raise if it is missing or blank."""
    if value is None or not str(value).strip():
        raise EditValidationError(f"Missing required parameter: {name}")
    return str(value)


def parse_decimal(value, name: str, minimum: Optional[Decimal] = Decimal("0")) -> Decimal:
    """
    Parse a finite decimal operand.

    Raises:
        EditValidationError: If missing, not a number, or below `minimum`
    """
    if value is None or str(value).strip() == "":
        raise EditValidationError(f"Missing required parameter: {name}")
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise EditValidationError(f"Invalid {name}: {value!r} is not a number")
    if not number.is_finite():
        raise EditValidationError(f"Invalid {name}: {value!r} is not a number")
    if minimum is not None and number < minimum:
        raise EditValidationError(f"Invalid {name}: must be at least {minimum}")
    return number


def parse_positive_decimal(value, name: str) -> Decimal:
    """Parse a decimal operand that must be strictly positive."""
    number = parse_decimal(value, name)
    if number <= 0:
        raise EditValidationError(f"Invalid {name}: must be greater than 0")
    return number


def parse_percentage(value, name: str = "percentage", allow_hundred: bool = True) -> Decimal:
    """
    Parse a percentage in (0, 100].

    With `allow_hundred=False` the range is (0, 100).
    """
    number = parse_decimal(value, name)
    if number <= 0 or number > 100 or (not allow_hundred and number == 100):
        upper = "100" if allow_hundred else "100 (exclusive)"
        raise EditValidationError(f"Percentage must be between 0 and {upper}")
    return number


def parse_positive_int(value, name: str) -> int:
    """Parse an integer operand that must be greater than zero."""
    if value is None or str(value).strip() == "":
        raise EditValidationError(f"Missing required parameter: {name}")
    try:
        number = int(str(value).strip())
    except ValueError:
        raise EditValidationError(f"Invalid {name}: {value!r} is not an integer")
    if number <= 0:
        raise EditValidationError(f"Invalid {name}: must be greater than 0")
    return number


def parse_bool(value, name: str) -> bool:
    """Parse a form boolean that must be exactly "true" or "false"."""
    if isinstance(value, bool):
        return value
    if value not in ("true", "false"):
        raise EditValidationError(
            f'Invalid {name}: must be either "true" or "false"'
        )
    return value == "true"


def parse_enum(enum_type: Type[E], value, name: str) -> E:
    """Parse a closed-enum operand by value."""
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise EditValidationError(
            f"Invalid {name}: {value!r} (must be one of {allowed})"
        )
