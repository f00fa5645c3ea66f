"""Percentage allocation checks for category edits.

The sum of ``percentage`` over non-income categories may never exceed 100.
Under-allocation is allowed; ``unallocated_percentage`` reports the gap.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence

from ...models import Category

ALLOCATION_LIMIT = 100.0
# absorbs float noise such as 50.1 + 49.9
_TOLERANCE = 1e-9


@dataclass
class AllocationCheck:
    """Result of validating a candidate percentage."""
    ok: bool
    total: float

    @property
    def remaining(self) -> float:
        return ALLOCATION_LIMIT - self.total


def _percentage(value: Any) -> float:
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


def allocated_total(categories: Sequence[Category], exclude_id: Optional[str] = None) -> float:
    """Sum of percentages over non-income categories, optionally skipping one id."""
    return sum(
        _percentage(c.percentage)
        for c in categories
        if not c.is_income and (exclude_id is None or c.id != exclude_id)
    )


def validate_allocation(
    categories: Sequence[Category],
    editing_category_id: Optional[str],
    candidate_percentage: Any,
) -> AllocationCheck:
    """Check whether a percentage edit keeps the allocation at or below 100%.
    
    Args:
        categories: Current categories of the budget
        editing_category_id: Id of the category being edited, or None for a new one
        candidate_percentage: The proposed percentage for that category
        
    Returns:
        AllocationCheck with ``ok`` False only when the total strictly exceeds 100
        
    Example:
        >>> cats = [Category('Essentials', percentage=50), Category('Wants', percentage=30)]
        >>> validate_allocation(cats, 'essentials', 60)
        AllocationCheck(ok=True, total=90.0)
        >>> validate_allocation(cats, 'essentials', 71).ok
        False
    """
    total = allocated_total(categories, exclude_id=editing_category_id) + _percentage(candidate_percentage)
    return AllocationCheck(ok=total <= ALLOCATION_LIMIT + _TOLERANCE, total=total)


def unallocated_percentage(categories: Sequence[Category]) -> float:
    """Percentage of income not yet assigned to any category (never negative)."""
    return max(0.0, ALLOCATION_LIMIT - allocated_total(categories))
