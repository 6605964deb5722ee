"""Display string helpers for prices, large amounts and percentages."""

LARGE_NUMBER_UNITS = ("", "K", "M", "B", "T", "Q")
MISSING = "-"


def format_currency(value: float | None) -> str:
    """Format a USD amount with thousands separators and 2 decimals."""
    if value is None:
        return MISSING
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_large_number(value: float | None) -> str:
    """
    Compact a USD amount with K/M/B/T/Q suffixes.

    Amounts below 1000 are formatted as plain currency. Once scaled, two
    decimals are kept below 100 units and none from 100 up, e.g.
    12,345,678 -> "$12.35M" and 123,456,789 -> "$123M".
    """
    if value is None:
        return MISSING
    if value < 1000:
        return format_currency(value)

    scaled = float(value)
    unit_index = 0
    while scaled >= 1000 and unit_index < len(LARGE_NUMBER_UNITS) - 1:
        scaled /= 1000
        unit_index += 1

    places = 2 if scaled < 100 else 0
    return f"${scaled:.{places}f}{LARGE_NUMBER_UNITS[unit_index]}"


def format_percent(value: float | None, places: int = 2, signed: bool = False) -> str:
    """Format a percentage, optionally with a leading '+' for non-negative values."""
    if value is None:
        return MISSING
    prefix = "+" if signed and value >= 0 else ""
    return f"{prefix}{value:.{places}f}%"


def format_decimal(value: float | None, places: int = 2) -> str:
    """Format a plain number to a fixed number of decimals."""
    if value is None:
        return MISSING
    return f"{value:.{places}f}"
