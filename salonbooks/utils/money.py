from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0")

# Debits and credits of an entry may differ by less than one cent
BALANCE_TOLERANCE = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Convert floats, ints, strings and None to Decimal without binary noise"""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def money(value) -> Decimal:
    """Round to cents, half up"""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
