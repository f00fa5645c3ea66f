"""Budget-specific utilities and business logic.

This module provides all budget-related functionality including:
- Transaction categorization
- Allocation validation and category management
- Budget plan calculations and suggestions
- Budget document storage
"""

from .categorization import (
    income_category_name,
    fallback_category_name,
    prioritize,
    category_keywords,
    classify_transaction,
    classify_transactions,
)
from .allocation import (
    ALLOCATION_LIMIT,
    AllocationCheck,
    allocated_total,
    validate_allocation,
    unallocated_percentage,
)
from .categories import (
    default_categories,
    find_category,
    add_category,
    update_category,
    set_category_percentage,
    delete_category,
)
from .calculations import (
    PlanPolicy,
    PlanResult,
    BudgetHealth,
    resolve_allocation,
    calculate_budget_summary,
    build_plan,
    budget_suggestions,
    compute_plan,
    budget_health,
    monthly_bucket_trends,
)
from .storage import BudgetStore

__all__ = [
    # Categorization
    'income_category_name',
    'fallback_category_name',
    'prioritize',
    'category_keywords',
    'classify_transaction',
    'classify_transactions',
    # Allocation
    'ALLOCATION_LIMIT',
    'AllocationCheck',
    'allocated_total',
    'validate_allocation',
    'unallocated_percentage',
    # Categories
    'default_categories',
    'find_category',
    'add_category',
    'update_category',
    'set_category_percentage',
    'delete_category',
    # Calculations
    'PlanPolicy',
    'PlanResult',
    'BudgetHealth',
    'resolve_allocation',
    'calculate_budget_summary',
    'build_plan',
    'budget_suggestions',
    'compute_plan',
    'budget_health',
    'monthly_bucket_trends',
    # Storage
    'BudgetStore',
]
