"""Decimal precision utilities for monetary amounts."""
from decimal import Decimal

# Standard precision for financial amounts (2 decimal places)
FINANCIAL_PRECISION = Decimal("0.01")
CENTS_PER_DOLLAR = Decimal(100)


def cents_to_dollars(cents: int) -> str:
    """
    Render an integer cent amount as a dollar string with exactly 2 decimals.

    The division is exact in Decimal arithmetic, so no rounding ever happens
    for integer input.

    Args:
        cents: Amount in cents

    Returns:
        Dollar amount string as used in CLM02 / SV102

    Example:
        >>> cents_to_dollars(35000)
        '350.00'
        >>> cents_to_dollars(8005)
        '80.05'
    """
    dollars = Decimal(int(cents)) / CENTS_PER_DOLLAR
    return str(dollars.quantize(FINANCIAL_PRECISION))


def format_quantity(value) -> str:
    """
    Render a service unit count without a trailing ``.0`` for whole numbers.

    Example:
        >>> format_quantity(2)
        '2'
        >>> format_quantity(1.5)
        '1.5'
    """
    quantity = Decimal(str(value))
    if quantity == quantity.to_integral_value():
        return str(int(quantity))
    # Fixed-point only; str() would give 1E-7 for small values
    return format(quantity.normalize(), "f")
