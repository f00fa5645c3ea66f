"""Budget allocation and financial insight engine.

Classifies transactions into budget categories, computes a recommended
spending plan, validates category allocations, tracks financial goals and
synthesizes insights for a personal budgeting dashboard.
"""

from .engine import BudgetSnapshot, DashboardState, persist_goal_progress, recompute
from .exceptions import AllocationError, BudgetError, CategoryError, GoalError, ValidationError
from .models import (
    BudgetPlan,
    BudgetPreferences,
    BudgetSummary,
    Category,
    FinancialGoal,
    Insight,
    PercentageAllocation,
    RatioAllocation,
    Transaction,
)

__version__ = "0.1.0"

__all__ = [
    'BudgetSnapshot',
    'DashboardState',
    'recompute',
    'persist_goal_progress',
    'BudgetError',
    'ValidationError',
    'CategoryError',
    'AllocationError',
    'GoalError',
    'Transaction',
    'Category',
    'BudgetPreferences',
    'FinancialGoal',
    'Insight',
    'BudgetSummary',
    'BudgetPlan',
    'RatioAllocation',
    'PercentageAllocation',
]
