"""Error types raised by the budget insight engine."""

from __future__ import annotations

from typing import Optional


class BudgetError(Exception):
    """Base class for all budget engine errors."""


class ValidationError(BudgetError, ValueError):
    """A user edit was rejected; nothing was applied."""


class CategoryError(ValidationError):
    """Invalid category edit (empty name, duplicate name, protected category)."""


class AllocationError(ValidationError):
    """Category percentages would exceed 100% of income."""

    def __init__(self, message: str, total: Optional[float] = None):
        super().__init__(message)
        self.total = total


class GoalError(ValidationError):
    """Invalid goal definition or progress update."""
