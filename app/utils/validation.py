"""
Validation utilities
"""
import re
from decimal import Decimal, InvalidOperation


def normalize_decimal_input(value: str) -> str:
    """
    Normalize an amount typed by a user: comma decimal separator -> dot

    Example:
        >>> normalize_decimal_input("100,50")
        "100.50"
        >>> normalize_decimal_input("100.50")
        "100.50"
    """
    return value.strip().replace(",", ".")


def validate_decimal_amount(
    value: str,
    max_decimal_places: int = 2,
    allow_negative: bool = False,
    max_integer_digits: int = 10,
) -> tuple[bool, str | None]:
    """
    Validate a money amount

    Args:
        value: amount as string
        max_decimal_places: maximum digits after the separator (default 2)
        allow_negative: accept a leading minus sign
        max_integer_digits: digits before the separator (10 fits Numeric(12, 2))

    Returns:
        (is_valid, error_message)

    Example:
        >>> validate_decimal_amount("100.50")
        (True, None)
        >>> validate_decimal_amount("100.505")
        (False, "At most 2 decimal places allowed")
    """
    normalized = normalize_decimal_input(value)

    try:
        amount = Decimal(normalized)
    except (InvalidOperation, ValueError):
        return False, "Invalid amount"
    if not amount.is_finite():
        return False, "Invalid amount"

    sign = "-?" if allow_negative else ""
    pattern = rf"^{sign}\d+(\.\d{{1,{max_decimal_places}}})?$"
    if not re.match(pattern, normalized):
        if normalized.startswith("-") and not allow_negative:
            return False, "Amount cannot be negative"
        return False, f"At most {max_decimal_places} decimal places allowed"
    if abs(amount) >= Decimal(10) ** max_integer_digits:
        return False, "Amount is too large"

    return True, None


def validate_and_normalize_amount(
    value: str, max_decimal_places: int = 2, allow_negative: bool = False,
) -> Decimal:
    """
    Validate and convert an amount (raise on error)

    Raises:
        ValueError: if validation fails

    Example:
        >>> validate_and_normalize_amount("100,50")
        Decimal("100.50")
    """
    is_valid, error = validate_decimal_amount(value, max_decimal_places, allow_negative)
    if not is_valid:
        raise ValueError(error)

    return Decimal(normalize_decimal_input(value))
