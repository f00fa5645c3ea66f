"""Transaction categorization utilities.

This module assigns a transaction to one of the budget's categories from its
description and signed amount using the keyword table in ``budgets.json``.
Category priority is an explicit input: categories are tried in ``priority``
order first, then in the order they were supplied.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ...models import Category, Transaction
from ..common.frames import as_transaction
from ..config import get_budget_config


def _get_keywords() -> Dict[str, List[str]]:
    """Get the built-in keyword table from configuration."""
    return get_budget_config()['keywords']


def _get_constants() -> Dict[str, Any]:
    return get_budget_config()['constants']


def income_category_name(categories: Sequence[Category]) -> str:
    """Name of the budget's income category (configured default if none is flagged)."""
    for category in categories:
        if category.is_income:
            return category.name
    return _get_constants()['income_category']


def fallback_category_name(categories: Sequence[Category]) -> str:
    """Name of the essentials-equivalent category used when nothing matches.

    Resolution order: the category whose id or name matches the configured
    fallback, then the first non-income default category, then the configured
    fallback name itself.
    """
    fallback = _get_constants()['fallback_category']
    key = fallback.lower()
    for category in categories:
        if not category.is_income and (category.id.lower() == key or category.key == key):
            return category.name
    for category in categories:
        if category.is_default and not category.is_income:
            return category.name
    return fallback


def prioritize(categories: Sequence[Category], priority: Optional[Sequence[str]] = None) -> List[Category]:
    """Order categories for first-match classification.

    Args:
        categories: The budget's categories in their stored order
        priority: Optional category names (case-insensitive) to try first, in order

    Returns:
        Categories named in ``priority`` first, followed by the remaining
        categories in their original order

    Example:
        >>> names = [c.name for c in prioritize(default_categories(), ['Savings'])]
        >>> names
        ['Savings', 'Essentials', 'Wants', 'Income']
    """
    if not priority:
        return list(categories)
    ordered: List[Category] = []
    seen = set()
    by_key = {}
    for category in categories:
        by_key.setdefault(category.key, category)
    for name in priority:
        category = by_key.get((name or '').strip().lower())
        if category is not None and id(category) not in seen:
            ordered.append(category)
            seen.add(id(category))
    ordered.extend(c for c in categories if id(c) not in seen)
    return ordered


def category_keywords(category: Category, keyword_table: Optional[Dict[str, List[str]]] = None) -> List[str]:
    """Keywords that route a description to ``category``.

    Built-in categories use the configured table; user-defined categories also
    match on their own name.
    """
    table = keyword_table if keyword_table is not None else _get_keywords()
    keywords = [kw.lower() for kw in table.get(category.name, [])]
    if not category.is_default and category.key:
        keywords.append(category.key)
    return keywords


def classify_transaction(
    description: Optional[str],
    amount: Any,
    categories: Sequence[Category],
    priority: Optional[Sequence[str]] = None,
) -> str:
    """Pick the category name for a transaction.

    Args:
        description: Free-text transaction description
        amount: Signed amount; positive amounts are income
        categories: The budget's categories
        priority: Optional explicit category priority (see ``prioritize``)

    Returns:
        A category name; never raises

    Example:
        >>> classify_transaction('Monthly rent payment', -1500, default_categories())
        'Essentials'
        >>> classify_transaction('Paycheck', 3000, default_categories())
        'Income'
    """
    try:
        signed = float(amount)
    except (TypeError, ValueError):
        signed = 0.0
    if signed > 0:
        return income_category_name(categories)

    desc = (description or '').lower()
    table = _get_keywords()

    for category in prioritize(categories, priority):
        if category.is_income:
            continue
        if any(keyword in desc for keyword in category_keywords(category, table)):
            return category.name

    return fallback_category_name(categories)


def classify_transactions(
    transactions: Iterable[Any],
    categories: Sequence[Category],
    priority: Optional[Sequence[str]] = None,
    include_categorized: bool = False,
) -> List[Transaction]:
    """Assign or confirm categories for a batch of transactions.

    Transactions whose category is blank or marked uncategorized are
    classified. Others keep their category, even one the budget does not
    define (goal categories such as Debt rely on this), unless
    ``include_categorized`` is set. Inputs are not mutated.
    """
    placeholders = {label.lower() for label in _get_constants()['uncategorized_labels']}
    result = []
    for item in transactions or []:
        txn = as_transaction(item)
        key = txn.category.strip().lower()
        needs_category = include_categorized or key in placeholders
        if needs_category:
            txn = dataclasses.replace(
                txn,
                category=classify_transaction(txn.description, txn.amount, categories, priority),
            )
        result.append(txn)
    return result
