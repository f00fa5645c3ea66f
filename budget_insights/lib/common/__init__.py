"""Shared helpers used across the engine modules.

This package provides:
- Currency and percentage formatting for insight messages
- Safe filename handling for the storage collaborator
- Transaction DataFrame preparation
"""

from .formatting import format_currency, format_percent
from .file_operations import safe_filename, ensure_directory
from .frames import (
    transactions_frame,
    income_mask,
    expense_rows,
    income_rows,
    filter_by_months,
)

__all__ = [
    'format_currency',
    'format_percent',
    'safe_filename',
    'ensure_directory',
    'transactions_frame',
    'income_mask',
    'expense_rows',
    'income_rows',
    'filter_by_months',
]
