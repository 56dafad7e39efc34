"""
Module: harvest_kernel.db.types
Responsibility: Column precision constants and the rounding helpers that every
    model, engine and service uses for monetary amounts, quantities and
    margin percentages.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    selectors/ and the engines.  MUST NOT import from any of those layers.

Invariants enforced:
    - No floats: all amounts are Decimal with explicit precision.
    - Snapshot margins fit Numeric(5, 2): MARGIN_FLOOR <= margin <= MARGIN_CEILING.
    - round_money / round_quantity / round_percent are the ONLY sanctioned
      rounding functions for values written to a snapshot.
"""

from decimal import Decimal, ROUND_HALF_UP

# Money columns are Numeric(14, 2), quantities Numeric(14, 3) (kg to the gram)
MONEY_DECIMAL_PLACES = 2
QUANTITY_DECIMAL_PLACES = 3
PERCENT_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

# Numeric(5, 2) bounds
MARGIN_FLOOR = Decimal("-999.99")
MARGIN_CEILING = Decimal("999.99")

ZERO = Decimal("0")


def _quantize(value: Decimal, decimal_places: int, rounding: str) -> Decimal:
    quantize_str = "0." + "0" * decimal_places
    return value.quantize(Decimal(quantize_str), rounding=rounding)


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the snapshot precision.

    Args:
        value: The Decimal value to round.
        decimal_places: Number of decimal places to round to.
        rounding: Rounding mode (default: ROUND_HALF_UP).

    Returns:
        Rounded Decimal value.
    """
    return _quantize(value, decimal_places, rounding)


def round_quantity(value: Decimal) -> Decimal:
    """Round a quantity to QUANTITY_DECIMAL_PLACES."""
    return _quantize(value, QUANTITY_DECIMAL_PLACES, DEFAULT_ROUNDING)


def round_percent(value: Decimal) -> Decimal:
    """Round a percentage to PERCENT_DECIMAL_PLACES."""
    return _quantize(value, PERCENT_DECIMAL_PLACES, DEFAULT_ROUNDING)


def to_decimal(value: Decimal | int | str | None) -> Decimal:
    """
    Coerce a nullable numeric column value to Decimal.

    Missing values count as zero, the way hours, rates and quantities
    recorded without a value have always been treated.  Floats are
    rejected outright.
    """
    if value is None:
        return ZERO
    if isinstance(value, float):
        raise TypeError(f"float values are not accepted: {value!r}")
    if isinstance(value, Decimal):
        return value
    return Decimal(value)
