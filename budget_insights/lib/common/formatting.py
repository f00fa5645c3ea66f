"""Formatting utilities for amounts quoted in insight and suggestion text."""

from __future__ import annotations

from typing import Union


def format_currency(amount: Union[float, int], include_sign: bool = True) -> str:
    """Format a currency amount with thousands separators and two decimals.
    
    Negative amounts keep the minus sign in front of the dollar sign.
    
    Example:
        >>> format_currency(1234.56)
        '$1,234.56'
        >>> format_currency(-50)
        '-$50.00'
        >>> format_currency(1234.56, include_sign=False)
        '1,234.56'
    """
    formatted = f"{abs(amount):,.2f}"
    prefix = '-' if amount < 0 else ''
    return f"{prefix}${formatted}" if include_sign else f"{prefix}{formatted}"


def format_percent(value: float, digits: int = 1) -> str:
    """Format a percentage value (already scaled to 0-100).
    
    Example:
        >>> format_percent(12.345)
        '12.3%'
    """
    return f"{value:.{digits}f}%"
