"""Explicit recomputation entry point.

The engine keeps no state between calls. The orchestrating layer builds a
``BudgetSnapshot`` whenever transactions, categories, goals or preferences
change, calls ``recompute`` and renders the returned ``DashboardState``.
Persisting recomputed goal progress is a separate step so that the
computation itself never touches storage.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .config import DEFAULT_BUDGET_ID
from .lib.budgets.calculations import BudgetHealth, PlanPolicy, budget_health, compute_plan
from .lib.budgets.categories import default_categories
from .lib.budgets.categorization import classify_transactions, income_category_name
from .lib.goals.progress import GoalMetrics, goal_metrics, recompute_goal_progress
from .lib.insights.synthesizer import InsightPolicy, group_insights, synthesize_insights
from .models import (
    Allocation,
    BudgetPlan,
    BudgetPreferences,
    BudgetSummary,
    Category,
    FinancialGoal,
    Insight,
    Transaction,
)

logger = logging.getLogger(__name__)


@dataclass
class BudgetSnapshot:
    """Everything the engine needs for one recomputation pass.

    Attributes:
        transactions: The budget's transactions (objects or dictionaries)
        categories: Budget categories; the default set is used when empty
        goals: Stored financial goals
        preferences: Ratio/percentage settings (defaults when None)
        selected_months: ``YYYY-MM`` keys of the active window; empty means all
        priority: Optional category names tried first by the classifier
    """
    transactions: Sequence[Any] = field(default_factory=list)
    categories: Sequence[Any] = field(default_factory=list)
    goals: Sequence[Any] = field(default_factory=list)
    preferences: Optional[Any] = None
    selected_months: Sequence[str] = field(default_factory=list)
    priority: Optional[Sequence[str]] = None


@dataclass
class DashboardState:
    """Derived values for one snapshot; never stored authoritatively."""
    transactions: List[Transaction]
    summary: BudgetSummary
    plan: BudgetPlan
    allocation: Allocation
    suggestions: List[str]
    health: BudgetHealth
    goals: List[FinancialGoal]
    changed_goals: List[FinancialGoal]
    goal_metrics: List[GoalMetrics]
    insights: List[Insight]

    @property
    def grouped_insights(self) -> Dict[str, List[Insight]]:
        return group_insights(self.insights)


def _as_category(item: Any) -> Category:
    return item if isinstance(item, Category) else Category.from_dict(item)


def _as_goal(item: Any) -> FinancialGoal:
    return item if isinstance(item, FinancialGoal) else FinancialGoal.from_dict(item)


def _as_preferences(item: Any) -> BudgetPreferences:
    if isinstance(item, BudgetPreferences):
        return item
    return BudgetPreferences.from_dict(item if isinstance(item, Mapping) else None)


def recompute(
    snapshot: BudgetSnapshot,
    now: Optional[datetime] = None,
    plan_policy: Optional[PlanPolicy] = None,
    insight_policy: Optional[InsightPolicy] = None,
) -> DashboardState:
    """Run classifier, plan calculator, goal tracker and insight synthesizer.

    The plan and window-based insights use the selected months; goal progress
    uses the full transaction set. Inputs are not mutated.

    Args:
        snapshot: Current budget state
        now: Clock for deadlines and year-to-date figures (defaults to now)
        plan_policy: Plan suggestion thresholds
        insight_policy: Insight rule thresholds

    Returns:
        DashboardState with the goals to persist in ``changed_goals``
    """
    now = now or datetime.now()
    categories = [_as_category(c) for c in snapshot.categories or []] or default_categories()
    preferences = _as_preferences(snapshot.preferences)
    goals = [_as_goal(g) for g in snapshot.goals or []]
    months = list(snapshot.selected_months or [])

    transactions = classify_transactions(snapshot.transactions, categories, snapshot.priority)
    result = compute_plan(transactions, preferences, categories, months=months, policy=plan_policy)
    updated_goals, changed_goals = recompute_goal_progress(goals, transactions, now)

    insights = synthesize_insights(
        transactions,
        updated_goals,
        result.summary.total_income,
        months,
        now=now,
        policy=insight_policy,
        income_category=income_category_name(categories),
    )

    logger.debug(
        "Recomputed dashboard: %d transactions, %d goals (%d changed), %d insights",
        len(transactions), len(updated_goals), len(changed_goals), len(insights),
    )
    return DashboardState(
        transactions=transactions,
        summary=result.summary,
        plan=result.plan,
        allocation=result.allocation,
        suggestions=result.suggestions,
        health=budget_health(result.plan, plan_policy),
        goals=updated_goals,
        changed_goals=changed_goals,
        goal_metrics=[goal_metrics(g, now) for g in updated_goals],
        insights=insights,
    )


def persist_goal_progress(
    store: Any,
    user_id: str,
    state: DashboardState,
    budget_id: str = DEFAULT_BUDGET_ID,
) -> int:
    """Write the goals a recomputation changed, as one batch.

    Returns:
        Number of goals written; 0 (and no write) when nothing changed
    """
    if not state.changed_goals:
        return 0
    return store.update_goals_progress(user_id, state.changed_goals, budget_id=budget_id)
