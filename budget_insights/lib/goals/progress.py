"""Goal progress tracking.

Auto-tracked goals (Debt, Investment, Custom) take their current amount from
matching transactions dated on or before the deadline. Savings goals are
manually tracked: only ``record_manual_progress`` changes them.
"""

from __future__ import annotations

import dataclasses
import logging
import math
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from ...config import DEFAULT_BUDGET_ID
from ...exceptions import GoalError
from ...models import FinancialGoal, goal_categories, parse_date
from ..common.frames import transactions_frame

logger = logging.getLogger(__name__)

_AMOUNT_TOLERANCE = 1e-9


@dataclass
class GoalMetrics:
    """Schedule and progress figures for one goal at a given moment."""
    goal_id: str
    progress_percent: float
    remaining: float
    days_until_deadline: Optional[int]
    monthly_required: Optional[float]
    overdue: bool
    completed: bool
    on_track: Optional[bool] = None


@dataclass
class GoalSummary:
    active_count: int = 0
    completed_count: int = 0
    debt_count: int = 0
    other_count: int = 0
    total_saved: float = 0.0
    total_target: float = 0.0


def is_auto_tracked(goal: FinancialGoal) -> bool:
    return not goal.is_manually_tracked


def _contributions(goal: FinancialGoal, frame: pd.DataFrame) -> Optional[float]:
    deadline = goal.deadline_at
    if deadline is None:
        return None
    if frame.empty:
        return 0.0
    cutoff = pd.Timestamp(deadline).normalize()
    mask = (
        frame['Category Key'].eq(goal.category.strip().lower())
        & frame['Transaction Date'].notna()
        & (frame['Transaction Date'].dt.normalize() <= cutoff)
    )
    return float(frame.loc[mask, 'Abs Amount'].sum())


def recompute_goal_amount(goal: FinancialGoal, transactions: Iterable[Any]) -> float:
    """Current amount an auto-tracked goal should have for ``transactions``.

    Manually tracked goals and goals with an unparseable deadline keep their
    stored amount.
    """
    if goal.is_manually_tracked:
        return goal.current_amount
    total = _contributions(goal, transactions_frame(transactions))
    return goal.current_amount if total is None else total


def recompute_goal_progress(
    goals: Sequence[FinancialGoal],
    transactions: Iterable[Any],
    now: Optional[datetime] = None,
) -> Tuple[List[FinancialGoal], List[FinancialGoal]]:
    """Recompute every auto-tracked goal against the transaction set.

    Args:
        goals: Stored goals
        transactions: The budget's full transaction set
        now: Timestamp written to ``last_updated`` on changed goals

    Returns:
        Tuple of (all goals with fresh amounts, only the goals that changed).
        Input goals are not mutated, and running twice on the same inputs
        reports no changes the second time.
    """
    now = now or datetime.now()
    frame = transactions_frame(transactions)
    updated: List[FinancialGoal] = []
    changed: List[FinancialGoal] = []

    for goal in goals:
        if goal.is_manually_tracked:
            updated.append(goal)
            continue
        total = _contributions(goal, frame)
        if total is None:
            logger.debug("Skipping goal %s: unparseable deadline %r", goal.id, goal.deadline)
            updated.append(goal)
            continue
        if abs(total - goal.current_amount) > _AMOUNT_TOLERANCE:
            goal = dataclasses.replace(goal, current_amount=total, last_updated=now.isoformat())
            changed.append(goal)
        updated.append(goal)

    logger.debug("Recomputed %d goals, %d changed", len(updated), len(changed))
    return updated, changed


def sync_goal_progress(
    store: Any,
    user_id: str,
    goals: Sequence[FinancialGoal],
    transactions: Iterable[Any],
    now: Optional[datetime] = None,
    budget_id: str = DEFAULT_BUDGET_ID,
) -> Tuple[List[FinancialGoal], List[FinancialGoal]]:
    """Recompute goal progress and persist the changes in one batch write.

    ``store`` is anything with an ``update_goals_progress(user_id, goals,
    budget_id=...)`` method. Nothing is written when no goal changed; storage
    errors propagate to the caller.
    """
    updated, changed = recompute_goal_progress(goals, transactions, now)
    if changed:
        store.update_goals_progress(user_id, changed, budget_id=budget_id)
    return updated, changed


def record_manual_progress(goal: FinancialGoal, amount: Any, now: Optional[datetime] = None) -> FinancialGoal:
    """Apply an "update actual savings" action to a Savings goal.

    Raises:
        GoalError: If the goal is auto-tracked or the amount is negative or
            not a number
    """
    if not goal.is_manually_tracked:
        raise GoalError(
            f'Goal "{goal.name}" tracks {goal.category} transactions automatically; '
            f'its amount cannot be set by hand'
        )
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise GoalError(f"Invalid amount: {amount!r}") from None
    if math.isnan(value) or value < 0:
        raise GoalError("Saved amount cannot be negative")
    now = now or datetime.now()
    return dataclasses.replace(goal, current_amount=value, last_updated=now.isoformat())


def new_goal(
    name: str,
    target_amount: Any,
    deadline: Any,
    category: str = 'Savings',
    current_amount: Any = 0.0,
    now: Optional[datetime] = None,
    **extra: Any,
) -> FinancialGoal:
    """Create a validated goal with a fresh id and creation timestamp.

    Raises:
        GoalError: Empty name, non-positive target, negative current amount,
            unparseable deadline or unknown category
    """
    if not name or not str(name).strip():
        raise GoalError("Goal name cannot be empty")
    try:
        target = float(target_amount)
        current = float(current_amount or 0.0)
    except (TypeError, ValueError):
        raise GoalError("Goal amounts must be numbers") from None
    if not target > 0:
        raise GoalError("Target amount must be greater than zero")
    if current < 0:
        raise GoalError("Current amount cannot be negative")
    if parse_date(deadline) is None:
        raise GoalError(f"Invalid deadline: {deadline!r}")
    known = {c.lower() for c in goal_categories()}
    if (category or '').strip().lower() not in known:
        raise GoalError(f"Unknown goal category: {category!r}")

    now = now or datetime.now()
    return FinancialGoal(
        name=str(name).strip(),
        target_amount=target,
        deadline=deadline,
        category=category,
        current_amount=current,
        id=uuid.uuid4().hex,
        created_at=now.isoformat(),
        **extra,
    )


def progress_percent(goal: FinancialGoal) -> float:
    if goal.target_amount <= 0:
        return 0.0
    return goal.current_amount / goal.target_amount * 100.0


def days_until_deadline(goal: FinancialGoal, now: datetime) -> Optional[int]:
    """Whole days left, rounded up; negative once the deadline has passed."""
    deadline = goal.deadline_at
    if deadline is None:
        return None
    return int(math.ceil((deadline - now).total_seconds() / 86400))


def is_on_track(goal: FinancialGoal, now: datetime) -> Optional[bool]:
    """Progress percent at least matches the share of created→deadline time elapsed.

    None when the creation date or deadline is unknown.
    """
    created, deadline = goal.created, goal.deadline_at
    if created is None or deadline is None:
        return None
    span = (deadline - created).total_seconds()
    if span <= 0:
        return progress_percent(goal) >= 100.0
    elapsed = (now - created).total_seconds() / span * 100.0
    return progress_percent(goal) >= elapsed


def goal_metrics(goal: FinancialGoal, now: Optional[datetime] = None) -> GoalMetrics:
    """Derive progress and schedule figures for ``goal`` at ``now``.

    Monthly required = remaining / (days left / 30). Overdue goals and goals
    without days left get no monthly figure.

    Example:
        >>> goal = FinancialGoal('Card', 1000, '2025-01-11', category='Debt', current_amount=400)
        >>> goal_metrics(goal, datetime(2025, 1, 1)).monthly_required
        1800.0
    """
    now = now or datetime.now()
    deadline = goal.deadline_at
    remaining = max(goal.target_amount - goal.current_amount, 0.0)
    days = days_until_deadline(goal, now)
    overdue = deadline is not None and deadline < now

    monthly = None
    if not overdue and days is not None and days > 0:
        monthly = remaining * 30 / days

    percent = progress_percent(goal)
    return GoalMetrics(
        goal_id=goal.id,
        progress_percent=percent,
        remaining=remaining,
        days_until_deadline=days,
        monthly_required=monthly,
        overdue=overdue,
        completed=goal.target_amount > 0 and percent >= 100.0,
        on_track=is_on_track(goal, now),
    )


def estimate_completion(
    goal: FinancialGoal,
    transactions: Iterable[Any],
    months_count: int,
    now: Optional[datetime] = None,
) -> Optional[datetime]:
    """Projected completion month from the average monthly contribution.

    The contribution is the total of the goal's category across
    ``transactions`` divided by ``months_count``. Returns None when there is
    nothing to average.
    """
    now = now or datetime.now()
    remaining = goal.target_amount - goal.current_amount
    if remaining <= 0:
        return now
    if months_count <= 0:
        return None
    frame = transactions_frame(transactions)
    if frame.empty:
        return None
    total = frame.loc[frame['Category Key'].eq(goal.category.strip().lower()), 'Abs Amount'].sum()
    monthly = float(total) / months_count
    if monthly <= 0:
        return None
    months = int(math.ceil(remaining / monthly))
    return (pd.Timestamp(now) + pd.DateOffset(months=months)).to_pydatetime()


def goal_summary(goals: Iterable[FinancialGoal]) -> GoalSummary:
    """Counts and totals for the goals dashboard header."""
    summary = GoalSummary()
    for goal in goals:
        if goal.target_amount > 0 and goal.current_amount >= goal.target_amount:
            summary.completed_count += 1
        else:
            summary.active_count += 1
        if goal.category == 'Debt':
            summary.debt_count += 1
        else:
            summary.other_count += 1
            summary.total_saved += goal.current_amount
        summary.total_target += goal.target_amount
    return summary
