"""Number and currency formatting utilities for PIECE Analyzer."""

from typing import Optional


def format_currency(value: float, decimals: int = 0, prefix: str = "$") -> str:
    """Format a number as a full currency string.

    Negative values carry the sign before the symbol.

    Args:
        value: The numeric value to format.
        decimals: Number of decimal places.
        prefix: Currency symbol prefix.

    Returns:
        Formatted currency string (e.g., "$1,234,567" or "-$45").
    """
    sign = "-" if round(value, decimals) < 0 else ""
    return f"{sign}{prefix}{abs(value):,.{decimals}f}"


def format_currency_short(value: float, decimals: int = 1, prefix: str = "$") -> str:
    """Format a number as an abbreviated currency string.

    Args:
        value: The numeric value to format.
        decimals: Number of decimal places.
        prefix: Currency symbol prefix.

    Returns:
        Abbreviated currency string (e.g., "$12.5M", "-$3.0K").
    """
    sign = "-" if value < 0 else ""
    magnitude = abs(value)
    if magnitude >= 1e9:
        return f"{sign}{prefix}{magnitude / 1e9:,.{decimals}f}B"
    if magnitude >= 1e6:
        return f"{sign}{prefix}{magnitude / 1e6:,.{decimals}f}M"
    if magnitude >= 1e3:
        return f"{sign}{prefix}{magnitude / 1e3:,.{decimals}f}K"
    return format_currency(value, decimals=0, prefix=prefix)


def format_percent(value: Optional[float], decimals: int = 1) -> str:
    """Format a decimal as percentage string.

    Args:
        value: Decimal value (e.g., 0.08 for 8%), or None.

    Returns:
        Formatted percentage string (e.g., "8.0%") or "N/A".
    """
    if value is None:
        return "N/A"
    return f"{value * 100:,.{decimals}f}%"


def format_number(value: float, decimals: int = 0) -> str:
    """Format a number with comma separators (e.g., "1,234")."""
    return f"{value:,.{decimals}f}"


def format_periods(value: Optional[float], unit: str = "years") -> str:
    """Format a payback period (e.g., "7.2 years" or "N/A")."""
    if value is None:
        return "N/A"
    return f"{value:.1f} {unit}"
