"""
Type Validator

Pure checks of a resolved value against a FieldType and optional length bound.

| type    | accepted values                                                  |
|---------|------------------------------------------------------------------|
| none    | anything                                                         |
| str     | native str, at most max_length characters                        |
| int     | int, integral float, or integral numeric string; max_length caps |
|         | the length of the value's string form                            |
| bool    | native bool, or exactly "true" / "false"                         |
| unknown | anything (unrecognized type tokens pass vacuously)               |
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from .field_spec import FieldType

# Decimal numeric literal with optional surrounding whitespace, sign,
# fraction and exponent. Hex, underscores, "nan" and "inf" are not numeric.
NUMERIC_STRING = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")

BOOLEAN_STRINGS = ("true", "false")


def is_numeric(value: Any) -> bool:
    """Return True for numbers (not bools) and numeric strings."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    if isinstance(value, str):
        return NUMERIC_STRING.match(value) is not None
    return False


def _to_decimal(value: Any) -> Optional[Decimal]:
    if isinstance(value, str):
        value = value.strip()
    try:
        return Decimal(value)
    except (InvalidOperation, ValueError):
        return None


def is_integer_valued(value: Any) -> bool:
    """Return True for ints and for numbers/numeric strings with no fractional part."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if not is_numeric(value):
        return False
    number = _to_decimal(value)
    if number is None or not number.is_finite():
        return False
    return number == number.to_integral_value()


def integer_length(value: Any) -> int:
    """Length of the string form of an integer-valued value, sign included."""
    if isinstance(value, str):
        return len(value)
    if isinstance(value, float):
        return len(str(int(value)))
    return len(str(value))


def validate_type(value: Any, field_type: FieldType, max_length: Optional[int] = None) -> bool:
    """
    Check a value against a type and optional length bound.

    Args:
        value: Resolved field value
        field_type: Required FieldType
        max_length: Character bound for str, string-form length bound for int

    Returns:
        True if the value satisfies the constraint
    """
    if field_type is FieldType.STRING:
        if not isinstance(value, str):
            return False
        return max_length is None or len(value) <= max_length

    if field_type is FieldType.INTEGER:
        if not is_integer_valued(value):
            return False
        return max_length is None or integer_length(value) <= max_length

    if field_type is FieldType.BOOLEAN:
        return isinstance(value, bool) or (
            isinstance(value, str) and value in BOOLEAN_STRINGS
        )

    # FieldType.NONE and FieldType.UNKNOWN
    return True
