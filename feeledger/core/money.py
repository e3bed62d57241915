"""Money as stored: Numeric(12, 2) in a single currency."""

from decimal import Decimal, InvalidOperation

from feeledger.core.exceptions import ValidationError

MONEY_MAX_DIGITS = 12
MONEY_DECIMAL_PLACES = 2
MONEY_QUANTUM = Decimal("0.01")
MONEY_MAX = Decimal("9999999999.99")


def to_money(value, label: str = "Amount") -> Decimal:
    """
    Return `value` as a two-place Decimal that the money columns store exactly.
    Raises ValidationError for non-numbers, sub-cent precision, or more integer
    digits than the column holds. Sign is left to the caller.
    """
    if value is None:
        raise ValidationError(f"{label} is required")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{label} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{label} must be a number")
    if abs(amount) > MONEY_MAX:
        raise ValidationError(f"{label} cannot exceed {MONEY_MAX}")
    if amount != amount.quantize(MONEY_QUANTUM):
        raise ValidationError(f"{label} can have at most {MONEY_DECIMAL_PLACES} decimal places")
    return amount.quantize(MONEY_QUANTUM)
