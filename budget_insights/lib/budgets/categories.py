"""Category management rules.

Edits are validated up front and applied to a copy of the category list, so a
rejected edit leaves the caller's list untouched.
"""

from __future__ import annotations

import dataclasses
import uuid
from typing import Any, List, Optional, Sequence

from ...exceptions import AllocationError, CategoryError
from ...models import Category
from ..config import get_budget_config
from .allocation import ALLOCATION_LIMIT, validate_allocation

EDITABLE_FIELDS = {'name', 'color', 'icon', 'percentage'}
PROTECTED_FIELDS = {'id', 'is_default', 'is_income'}


def default_categories() -> List[Category]:
    """Essentials, Wants, Savings and Income as configured in ``budgets.json``."""
    return [Category.from_dict(entry) for entry in get_budget_config()['default_categories']]


def find_category(categories: Sequence[Category], category_id: str) -> Optional[Category]:
    return next((c for c in categories if c.id == category_id), None)


def _check_name(categories: Sequence[Category], name: Any, exclude_id: Optional[str] = None) -> str:
    cleaned = str(name).strip() if name is not None else ''
    if not cleaned:
        raise CategoryError("Category name cannot be empty")
    key = cleaned.lower()
    for category in categories:
        if category.id != exclude_id and category.key == key:
            raise CategoryError(f'Category "{cleaned}" already exists in this budget')
    return cleaned


def _check_percentage(
    categories: Sequence[Category],
    category_id: Optional[str],
    percentage: Any,
) -> Optional[float]:
    if percentage is None:
        return None
    try:
        value = float(percentage)
    except (TypeError, ValueError):
        raise CategoryError(f"Invalid percentage: {percentage!r}") from None
    if value < 0 or value > ALLOCATION_LIMIT:
        raise AllocationError("Percentage must be between 0 and 100", total=value)
    check = validate_allocation(categories, category_id, value)
    if not check.ok:
        raise AllocationError(
            f"Total allocation would be {check.total:.1f}%, which exceeds 100%",
            total=check.total,
        )
    return value


def add_category(categories: Sequence[Category], category: Category) -> List[Category]:
    """Return a new list with ``category`` appended as a non-default category.
    
    Raises:
        CategoryError: If the name is empty or already used
        AllocationError: If its percentage would push the allocation over 100%
    """
    name = _check_name(categories, category.name)
    percentage = category.percentage
    if not category.is_income:
        percentage = _check_percentage(categories, None, category.percentage)

    new_id = category.id
    if not new_id or find_category(categories, new_id) is not None:
        new_id = f"{Category(name).id}-{uuid.uuid4().hex[:8]}"

    added = dataclasses.replace(category, id=new_id, name=name, is_default=False, percentage=percentage)
    return list(categories) + [added]


def update_category(categories: Sequence[Category], category_id: str, **changes: Any) -> List[Category]:
    """Return a new list with the given fields of one category changed.
    
    Default categories may be renamed and recolored; ``id``, ``is_default``
    and ``is_income`` are fixed.
    
    Raises:
        CategoryError: Unknown category, protected or unknown field, bad name
        AllocationError: If the new percentage would exceed the 100% limit
    """
    current = find_category(categories, category_id)
    if current is None:
        raise CategoryError(f"Category '{category_id}' not found")

    protected = PROTECTED_FIELDS.intersection(changes)
    if protected:
        raise CategoryError(f"Cannot change {', '.join(sorted(protected))} of a category")
    unknown = set(changes) - EDITABLE_FIELDS
    if unknown:
        raise CategoryError(f"Unknown category fields: {', '.join(sorted(unknown))}")

    updates = dict(changes)
    if 'name' in updates:
        updates['name'] = _check_name(categories, updates['name'], exclude_id=category_id)
    if 'percentage' in updates and not current.is_income:
        updates['percentage'] = _check_percentage(categories, category_id, updates['percentage'])

    updated = dataclasses.replace(current, **updates)
    return [updated if c.id == category_id else c for c in categories]


def set_category_percentage(categories: Sequence[Category], category_id: str, percentage: Any) -> List[Category]:
    """Apply a percentage edit, rejecting it when the allocation would exceed 100%."""
    return update_category(categories, category_id, percentage=percentage)


def delete_category(categories: Sequence[Category], category_id: str) -> List[Category]:
    """Return a new list without the category.
    
    Raises:
        CategoryError: If the category is unknown or is a default category
    """
    target = find_category(categories, category_id)
    if target is None:
        raise CategoryError(f"Category '{category_id}' not found")
    if target.is_default:
        raise CategoryError(f'Cannot delete default category "{target.name}"')
    return [c for c in categories if c.id != category_id]
