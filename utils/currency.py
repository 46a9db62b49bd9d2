from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENTS = Decimal("0.01")
_MINOR_UNITS = 100


def to_decimal(value) -> Decimal | None:
    """Coerce user input to a 2-place Decimal, returning None when it isn't a number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return None
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Decimal) -> int:
    """Decimal → integer cents for storage."""
    return int((amount * _MINOR_UNITS).to_integral_value(rounding=ROUND_HALF_UP))


def from_minor_units(value: int | None) -> Decimal:
    """Stored integer cents → Decimal."""
    return (Decimal(value or 0) / _MINOR_UNITS).quantize(CENTS)


def format_currency(amount: Decimal, symbol: str = "₹") -> str:
    """Format an amount as a currency string, e.g. '₹1,234.56'."""
    return f"{symbol}{amount:,.2f}"


def format_signed(amount: Decimal, symbol: str = "₹") -> str:
    """Format with +/- sign."""
    sign = "+" if amount >= 0 else "-"
    return f"{sign}{symbol}{abs(amount):,.2f}"
