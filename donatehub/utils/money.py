from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from donatehub.utils.exceptions import InvalidArgumentError

CENT = Decimal("0.01")
# largest value a Numeric(12, 2) column holds
MAX_AMOUNT = Decimal("9999999999.99")


def parse_amount(value):
    """Money amount rounded to cents; must be positive and fit the money columns."""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidArgumentError("Amount must be a number", details={"amount": str(value)})
    if not amount.is_finite():
        raise InvalidArgumentError("Amount must be a number", details={"amount": str(value)})
    if amount > MAX_AMOUNT:
        raise InvalidArgumentError(
            "Amount is too large",
            details={"amount": str(value), "max": str(MAX_AMOUNT)},
        )

    if amount <= 0 or amount.quantize(CENT, rounding=ROUND_HALF_UP) <= 0:
        raise InvalidArgumentError("Amount must be positive", details={"amount": str(value)})
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)
