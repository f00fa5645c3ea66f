"""Budget calculation and suggestion utilities.

This module aggregates transactions into a budget summary, turns target
ratios (or per-category percentages) into a recommended spending plan,
compares plan against actual spending, and produces textual suggestions,
a budget health score and monthly bucket trends.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from ...models import (
    Allocation,
    BudgetPlan,
    BudgetPreferences,
    BudgetSummary,
    Category,
    PercentageAllocation,
    RatioAllocation,
)
from ..common.formatting import format_currency
from ..common.frames import filter_by_months, income_mask, transactions_frame
from ..config import get_budget_config
from .categorization import income_category_name


@dataclass
class PlanPolicy:
    """Tunable thresholds for plan suggestions and health scoring."""
    overspend_notice_ratio: float = 0.10
    overspend_alert_ratio: float = 0.25
    uncategorized_income_share: float = 0.10
    adherence_max_score: float = 40.0
    savings_max_score: float = 30.0
    adherence_notice_score: float = 30.0
    savings_notice_score: float = 20.0

    @classmethod
    def from_config(cls) -> 'PlanPolicy':
        settings = get_budget_config().get('plan', {})
        known = {f.name for f in fields(cls)}
        return cls(**{k: float(v) for k, v in settings.items() if k in known})


@dataclass
class PlanResult:
    summary: BudgetSummary
    plan: BudgetPlan
    suggestions: List[str]
    allocation: Allocation


@dataclass
class BudgetHealth:
    adherence_score: float = 0.0
    savings_score: float = 0.0
    total_score: int = 0
    recommendations: List[str] = field(default_factory=list)


def _constants() -> Dict[str, Any]:
    return get_budget_config()['constants']


def _is_savings(bucket: str) -> bool:
    return bucket.strip().lower() == _constants()['savings_category'].lower()


def resolve_allocation(
    preferences: Optional[BudgetPreferences] = None,
    categories: Optional[Sequence[Category]] = None,
) -> Allocation:
    """Decide once whether the plan is ratio-based or percentage-based.

    Percentage mode needs both ``allocation_mode == 'percentage'`` and a
    category list; anything else falls back to the ratio plan.
    """
    preferences = preferences or BudgetPreferences()
    if preferences.allocation_mode == 'percentage' and categories:
        return PercentageAllocation({
            c.name: float(c.percentage or 0.0)
            for c in categories
            if not c.is_income
        })
    return RatioAllocation(dict(preferences.ratios))


def calculate_budget_summary(
    transactions: Iterable[Any],
    income_category: Optional[str] = None,
) -> BudgetSummary:
    """Calculate income, expenses and per-category spending totals.

    Args:
        transactions: Transactions already restricted to the active window
        income_category: Name of the income category (configured default if None)

    Returns:
        BudgetSummary; category names are merged case-insensitively keeping
        the first spelling seen, and uncategorized spending is reported as
        ``Uncategorized``
    """
    frame = transactions_frame(transactions)
    if frame.empty:
        return BudgetSummary()

    mask = income_mask(frame, income_category)
    total_income = float(frame.loc[mask, 'Amount'].sum())
    expenses = frame[~mask]
    total_expenses = float(expenses['Abs Amount'].sum())

    categories: Dict[str, float] = {}
    if not expenses.empty:
        grouped = expenses.groupby('Category Key', sort=False).agg(
            Category=('Category', 'first'),
            Total=('Abs Amount', 'sum'),
        )
        for _, row in grouped.iterrows():
            name = str(row['Category']).strip() or 'Uncategorized'
            categories[name] = categories.get(name, 0.0) + float(row['Total'])

    percentages = {
        name: (amount / total_expenses * 100.0) if total_expenses > 0 else 0.0
        for name, amount in categories.items()
    }

    return BudgetSummary(
        total_income=total_income,
        total_expenses=total_expenses,
        net_cashflow=total_income - total_expenses,
        categories=categories,
        percentages=percentages,
    )


def build_plan(summary: BudgetSummary, allocation: Allocation) -> BudgetPlan:
    """Compare recommended amounts per bucket with actual spending.

    Recommended = income * target / 100, with targets used exactly as given
    even when they do not sum to 100. Zero (or negative) income yields
    all-zero recommendations. Difference = actual - recommended, so a
    positive difference is overspending.

    Example:
        >>> summary = BudgetSummary(total_income=5000)
        >>> build_plan(summary, RatioAllocation({'essentials': 50, 'wants': 30, 'savings': 20})).recommended
        {'essentials': 2500.0, 'wants': 1500.0, 'savings': 1000.0}
    """
    income = summary.total_income
    base = income if income > 0 else 0.0
    targets = allocation.targets

    actual = {bucket: 0.0 for bucket in targets}
    for name, total in summary.categories.items():
        bucket = allocation.bucket_for(name)
        if bucket is not None:
            actual[bucket] += total

    recommended = {bucket: base * pct / 100.0 for bucket, pct in targets.items()}
    difference = {bucket: actual[bucket] - recommended[bucket] for bucket in targets}

    return BudgetPlan(
        income=income,
        kind=allocation.kind,
        targets=targets,
        recommended=recommended,
        actual=actual,
        difference=difference,
    )


def budget_suggestions(
    plan: BudgetPlan,
    summary: Optional[BudgetSummary] = None,
    policy: Optional[PlanPolicy] = None,
) -> List[str]:
    """Generate short hints from the plan.

    Spending buckets over their recommendation by at least
    ``overspend_notice_ratio`` get a review hint; at ``overspend_alert_ratio``
    and above the hint becomes a firmer "reduce" message. The savings bucket
    is judged the other way round.
    """
    policy = policy or PlanPolicy.from_config()
    if plan.income <= 0:
        return ['No income detected. Please make sure your transactions include income.']

    suggestions: List[str] = []
    for bucket in plan.targets:
        recommended = plan.recommended[bucket]
        actual = plan.actual[bucket]
        label = bucket.lower()

        if _is_savings(bucket):
            if actual > recommended:
                suggestions.append(
                    f"You're saving {format_currency(actual - recommended)} more than the recommended "
                    f"amount, which is excellent for your financial future!"
                )
            elif recommended > 0 and (recommended - actual) / recommended >= policy.overspend_notice_ratio:
                suggestions.append(
                    f"You're saving {format_currency(recommended - actual)} less than recommended. "
                    f"Consider setting up an automatic transfer to build your {label}."
                )
            continue

        overspend = actual - recommended
        if overspend > 0:
            ratio = overspend / recommended if recommended > 0 else math.inf
            if ratio >= policy.overspend_alert_ratio:
                suggestions.append(
                    f"You're spending {format_currency(overspend)} more than recommended on {label}. "
                    f"Reduce {label} spending to get back on plan."
                )
            elif ratio >= policy.overspend_notice_ratio:
                suggestions.append(
                    f"You're spending {format_currency(overspend)} more than recommended on {label}. "
                    f"Consider reviewing your {label} expenses to find areas to cut back."
                )
        elif overspend < 0:
            suggestions.append(
                f"You're spending {format_currency(-overspend)} less than the recommended amount "
                f"on {label}, which is great!"
            )

    if summary is not None:
        labels = {l.lower() for l in _constants()['uncategorized_labels']}
        uncategorized = sum(
            amount for name, amount in summary.categories.items()
            if name.strip().lower() in labels
        )
        if uncategorized > policy.uncategorized_income_share * plan.income:
            suggestions.append(
                f"You have a significant amount ({format_currency(uncategorized)}) in uncategorized "
                f"expenses. Review these transactions to better understand your spending patterns."
            )

    return suggestions


def compute_plan(
    transactions: Iterable[Any],
    preferences: Optional[BudgetPreferences] = None,
    categories: Optional[Sequence[Category]] = None,
    months: Optional[Iterable[Any]] = None,
    policy: Optional[PlanPolicy] = None,
) -> PlanResult:
    """Summary, plan and suggestions for the active window.

    Args:
        transactions: Budget transactions
        preferences: Ratios and allocation mode (defaults to 50/30/20 ratios)
        categories: Budget categories; needed for percentage mode and to find
            the income category
        months: Optional ``YYYY-MM`` selection applied before aggregating
        policy: Suggestion thresholds (configured defaults if None)
    """
    categories = list(categories or [])
    if months:
        transactions = filter_by_months(transactions, months)
    income_name = income_category_name(categories)
    allocation = resolve_allocation(preferences, categories)
    summary = calculate_budget_summary(transactions, income_name)
    plan = build_plan(summary, allocation)
    return PlanResult(
        summary=summary,
        plan=plan,
        suggestions=budget_suggestions(plan, summary, policy),
        allocation=allocation,
    )


def budget_health(plan: BudgetPlan, policy: Optional[PlanPolicy] = None) -> BudgetHealth:
    """Score how closely spending follows the plan.

    Adherence starts at ``adherence_max_score`` and loses one point per
    percentage point of deviation from each target; the savings score scales
    the savings share of income against its target. The total is normalised
    to 0-100.
    """
    policy = policy or PlanPolicy.from_config()
    if plan.income <= 0:
        return BudgetHealth()

    actual_pct = {bucket: plan.actual[bucket] / plan.income * 100.0 for bucket in plan.targets}
    deviation = sum(abs(actual_pct[bucket] - target) for bucket, target in plan.targets.items())
    adherence = max(0.0, policy.adherence_max_score - deviation)

    savings = 0.0
    for bucket, target in plan.targets.items():
        if _is_savings(bucket):
            if target > 0:
                savings = min(policy.savings_max_score, actual_pct[bucket] / target * policy.savings_max_score)
            else:
                savings = policy.savings_max_score
            break

    scale = policy.adherence_max_score + policy.savings_max_score
    total = int(round((adherence + savings) / scale * 100)) if scale > 0 else 0

    recommendations = []
    if adherence < policy.adherence_notice_score:
        recommendations.append(
            "Your spending ratios deviate significantly from your targets. "
            "Consider reviewing your essential expenses."
        )
    if savings < policy.savings_notice_score:
        recommendations.append(
            "Your savings rate is below target. Try to identify areas where you "
            "can reduce discretionary spending."
        )
    return BudgetHealth(
        adherence_score=adherence,
        savings_score=savings,
        total_score=total,
        recommendations=recommendations,
    )


def monthly_bucket_trends(
    transactions: Iterable[Any],
    preferences: Optional[BudgetPreferences] = None,
    categories: Optional[Sequence[Category]] = None,
) -> pd.DataFrame:
    """Create DataFrame showing monthly income and spending per plan bucket.

    Returns:
        DataFrame with columns: Month, Income, then one column per bucket
    """
    categories = list(categories or [])
    allocation = resolve_allocation(preferences, categories)
    buckets = list(allocation.targets)
    columns = ['Month', 'Income'] + buckets

    frame = transactions_frame(transactions)
    frame = frame[frame['Transaction Date'].notna()]
    if frame.empty:
        return pd.DataFrame(columns=columns)

    mask = income_mask(frame, income_category_name(categories))
    income_by_month = frame[mask].groupby('Month')['Amount'].sum().to_dict()

    expenses = frame[~mask].copy()
    expenses['Bucket'] = expenses['Category'].map(allocation.bucket_for)
    expenses = expenses[expenses['Bucket'].notna()]
    spend = {
        key: float(value)
        for key, value in expenses.groupby(['Month', 'Bucket'])['Abs Amount'].sum().items()
    }

    rows = []
    for month in sorted(frame['Month'].unique()):
        row = {'Month': month, 'Income': float(income_by_month.get(month, 0.0))}
        for bucket in buckets:
            row[bucket] = spend.get((month, bucket), 0.0)
        rows.append(row)
    return pd.DataFrame(rows, columns=columns)
