"""Financial goal tracking.

This module provides:
- Goal progress recomputation from transactions (auto-tracked goals)
- Manual "update actual savings" for Savings goals
- Schedule metrics (progress, days left, monthly required, on-track)
- Debt amortization helpers
"""

from .progress import (
    GoalMetrics,
    GoalSummary,
    is_auto_tracked,
    recompute_goal_amount,
    recompute_goal_progress,
    sync_goal_progress,
    record_manual_progress,
    new_goal,
    progress_percent,
    days_until_deadline,
    is_on_track,
    goal_metrics,
    estimate_completion,
    goal_summary,
)
from .debt import (
    monthly_rate,
    monthly_payment,
    months_to_payoff,
    months_between,
    required_payment,
)

__all__ = [
    # Progress
    'GoalMetrics',
    'GoalSummary',
    'is_auto_tracked',
    'recompute_goal_amount',
    'recompute_goal_progress',
    'sync_goal_progress',
    'record_manual_progress',
    'new_goal',
    'progress_percent',
    'days_until_deadline',
    'is_on_track',
    'goal_metrics',
    'estimate_completion',
    'goal_summary',
    # Debt
    'monthly_rate',
    'monthly_payment',
    'months_to_payoff',
    'months_between',
    'required_payment',
]
