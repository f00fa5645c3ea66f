"""Insight synthesis.

Combines transactions, goals and income into short classified messages:
smart goal suggestions, goal lifecycle notes, savings rate, top category and
outliers, and month-over-month spending overall and per category. Each rule
is computed on its own and skipped when its inputs are missing; nothing here
raises for well-typed input.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from ...models import FinancialGoal, INSIGHT_TYPES, Insight
from ..common.formatting import format_currency, format_percent
from ..common.frames import expense_rows, filter_by_months, income_rows, month_key, transactions_frame
from ..config import get_budget_config
from ..goals.progress import goal_metrics

logger = logging.getLogger(__name__)


@dataclass
class InsightPolicy:
    """Thresholds used by the insight rules (``insights`` in budgets.json)."""
    emergency_fund_months: float = 6
    retirement_income_share: float = 0.15
    major_purchase_min_savings_rate: float = 10
    major_purchase_max_goals: float = 3
    debt_keywords: List[str] = field(default_factory=lambda: ['debt', 'loan'])
    deadline_warning_days: float = 30
    near_complete_percent: float = 90
    savings_rate_low: float = 10
    savings_rate_benchmark: float = 20
    top_category_income_share: float = 30
    large_transaction_multiple: float = 2
    max_large_transactions: float = 3
    spending_change_percent: float = 10
    category_change_percent: float = 20

    @classmethod
    def from_config(cls) -> 'InsightPolicy':
        settings = get_budget_config().get('insights', {})
        values: Dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in settings:
                continue
            raw = settings[f.name]
            values[f.name] = [str(v).lower() for v in raw] if f.name == 'debt_keywords' else float(raw)
        return cls(**values)


def _as_goal(item: Any) -> FinancialGoal:
    if isinstance(item, FinancialGoal):
        return item
    return FinancialGoal.from_dict(item)


def _savings_category() -> str:
    return get_budget_config()['constants']['savings_category']


def _month_label(key: str) -> str:
    try:
        return datetime.strptime(key, '%Y-%m').strftime('%B %Y')
    except ValueError:
        return key


# --------------------------------------------------------------- savings rate

def year_to_date_income(
    transactions: Iterable[Any],
    total_income: float,
    now: datetime,
    income_category: Optional[str] = None,
) -> float:
    """Income received this calendar year up to ``now``.

    Falls back to ``total_income * months elapsed / 12`` when no income
    transaction falls in that range.
    """
    frame = income_rows(transactions_frame(transactions), income_category)
    dates = frame['Transaction Date']
    start = pd.Timestamp(year=now.year, month=1, day=1)
    in_range = frame[dates.notna() & (dates >= start) & (dates <= pd.Timestamp(now))]
    actual = float(in_range['Amount'].sum()) if not in_range.empty else 0.0
    if actual > 0:
        return actual
    return max(total_income, 0.0) * now.month / 12


def savings_rate(
    goals: Sequence[FinancialGoal],
    transactions: Iterable[Any],
    total_income: float,
    now: datetime,
    income_category: Optional[str] = None,
) -> Optional[float]:
    """Savings goals' current amounts as a percent of year-to-date income.

    None when there are no savings goals or no income to compare against.
    """
    savings_key = _savings_category().lower()
    saving_goals = [g for g in goals if g.category.lower() == savings_key]
    if not saving_goals:
        return None
    income = year_to_date_income(transactions, total_income, now, income_category)
    if income <= 0:
        return None
    return sum(g.current_amount for g in saving_goals) / income * 100.0


def savings_rate_insight(rate: Optional[float], policy: InsightPolicy) -> List[Insight]:
    if rate is None:
        return []
    benchmark = format_percent(policy.savings_rate_benchmark, 0)
    if rate < policy.savings_rate_low:
        return [Insight(
            'warning',
            f"Your savings rate is {format_percent(rate)}, well below the recommended {benchmark} of income.",
            action='Set up an automatic transfer to your savings goals.',
            rule='savings_rate',
        )]
    if rate < policy.savings_rate_benchmark:
        return [Insight(
            'info',
            f"Your savings rate is {format_percent(rate)}. Aim for {benchmark} of your income.",
            rule='savings_rate',
        )]
    return [Insight(
        'success',
        f"Great job! Your savings rate of {format_percent(rate)} meets the {benchmark} benchmark.",
        rule='savings_rate',
    )]


# ----------------------------------------------------------------- smart goals

def average_monthly_spend(frame: pd.DataFrame, months_count: Optional[int] = None,
                          income_category: Optional[str] = None) -> float:
    """Average monthly spend over the Essentials/Wants/Savings buckets."""
    expenses = expense_rows(frame, income_category)
    buckets = {b.lower() for b in get_budget_config()['constants']['canonical_buckets']}
    expenses = expenses[expenses['Category Key'].isin(buckets)]
    if expenses.empty:
        return 0.0
    if not months_count:
        months_count = expenses.loc[expenses['Transaction Date'].notna(), 'Month'].nunique() or 1
    return float(expenses['Abs Amount'].sum()) / months_count


def smart_goal_suggestions(
    frame: pd.DataFrame,
    goals: Sequence[FinancialGoal],
    total_income: float,
    rate: Optional[float],
    policy: InsightPolicy,
    months_count: Optional[int] = None,
    income_category: Optional[str] = None,
) -> List[Insight]:
    """Propose emergency fund, retirement, debt and major purchase goals."""
    names = [g.name.lower() for g in goals]
    insights = []

    monthly_spend = average_monthly_spend(frame, months_count, income_category)
    if monthly_spend > 0 and not any('emergency' in n for n in names):
        fund = monthly_spend * policy.emergency_fund_months
        insights.append(Insight(
            'info',
            f"Build an emergency fund of {format_currency(fund)}, about "
            f"{policy.emergency_fund_months:g} months of your typical spending.",
            action='Create an Emergency Fund goal',
            rule='smart_goal',
        ))

    if total_income > 0 and not any('retirement' in n for n in names):
        amount = total_income * policy.retirement_income_share
        insights.append(Insight(
            'info',
            f"Consider putting {format_currency(amount)} "
            f"({format_percent(policy.retirement_income_share * 100, 0)} of your income) toward retirement.",
            action='Create a Retirement goal',
            rule='smart_goal',
        ))

    if not frame.empty and policy.debt_keywords:
        pattern = '|'.join(re.escape(k) for k in policy.debt_keywords)
        text = frame['Description'].str.lower() + ' ' + frame['Category Key']
        has_debt = bool(text.str.contains(pattern, regex=True).any())
        if has_debt and not any(g.category == 'Debt' for g in goals):
            insights.append(Insight(
                'info',
                "You have debt or loan payments but no debt reduction goal.",
                action='Create a Debt goal to track your payoff',
                rule='smart_goal',
            ))

    if rate is not None and rate > policy.major_purchase_min_savings_rate and len(goals) < policy.major_purchase_max_goals:
        insights.append(Insight(
            'info',
            "Your savings rate leaves room for a bigger plan. Consider a goal for a major purchase.",
            action='Create a Major Purchase goal',
            rule='smart_goal',
        ))
    return insights


# --------------------------------------------------------------- goal lifecycle

def _milestone(goal: FinancialGoal, percent: float) -> Insight:
    name = goal.name
    shown = format_percent(percent, 0)
    if percent >= 100:
        return Insight('success', f'You reached your "{name}" goal. Congratulations!', rule='milestone')
    if percent >= 75:
        return Insight('success', f'"{name}" is {shown} complete. The finish line is in sight!', rule='milestone')
    if percent >= 50:
        return Insight('info', f'"{name}" is past the halfway mark at {shown}.', rule='milestone')
    if percent >= 25:
        return Insight('info', f'"{name}" is {shown} complete. Keep the momentum going.', rule='milestone')
    action = None
    if goal.category.lower() != _savings_category().lower():
        action = 'Set up an automatic transfer to make steady progress'
    return Insight('info', f'"{name}" is just getting started at {shown}.', action=action, rule='milestone')


def goal_lifecycle_insights(goals: Sequence[FinancialGoal], now: datetime, policy: InsightPolicy) -> List[Insight]:
    """Deadline, monthly-required and milestone messages for each goal."""
    savings_key = _savings_category().lower()
    insights = []
    for goal in goals:
        metrics = goal_metrics(goal, now)
        shown = format_percent(metrics.progress_percent, 0)

        if metrics.overdue:
            insights.append(Insight(
                'warning',
                f'The deadline for "{goal.name}" has passed with {shown} complete.',
                action='Review the deadline or target amount',
                rule='deadline_passed',
            ))
        elif metrics.days_until_deadline is not None and metrics.days_until_deadline <= policy.deadline_warning_days:
            days = metrics.days_until_deadline
            if metrics.progress_percent >= policy.near_complete_percent:
                insights.append(Insight(
                    'success',
                    f'"{goal.name}" is {shown} complete with {days} days to go.',
                    rule='deadline_near',
                ))
            else:
                insights.append(Insight(
                    'warning',
                    f'Only {days} days left for "{goal.name}", which is {shown} complete.',
                    rule='deadline_near',
                ))

        if (
            goal.category.lower() != savings_key
            and metrics.monthly_required is not None
            and metrics.remaining > 0
        ):
            insights.append(Insight(
                'info',
                f'Put aside {format_currency(metrics.monthly_required)} per month to reach "{goal.name}" on time.',
                rule='monthly_required',
            ))

        if goal.target_amount > 0:
            insights.append(_milestone(goal, metrics.progress_percent))
    return insights


# ------------------------------------------------------------ spending patterns

def top_category_insights(frame: pd.DataFrame, total_income: float, policy: InsightPolicy,
                          income_category: Optional[str] = None) -> List[Insight]:
    """Flag the biggest spending category and unusually large expenses."""
    expenses = expense_rows(frame, income_category)
    if expenses.empty:
        return []
    insights = []

    by_category = expenses.groupby('Category Key').agg(
        Category=('Category', 'first'),
        Total=('Abs Amount', 'sum'),
    )
    top = by_category.sort_values('Total', ascending=False, kind='mergesort').iloc[0]
    name = str(top['Category']).strip() or 'Uncategorized'
    amount = float(top['Total'])
    if total_income > 0:
        share = amount / total_income * 100.0
        if share > policy.top_category_income_share:
            insights.append(Insight(
                'warning',
                f"{name} is your biggest expense at {format_currency(amount)}, "
                f"{format_percent(share)} of your income.",
                action=f'Look for savings in {name}',
                rule='top_category',
            ))
        else:
            insights.append(Insight(
                'info',
                f"{name} is your biggest expense at {format_currency(amount)} "
                f"({format_percent(share)} of income).",
                rule='top_category',
            ))
    else:
        insights.append(Insight(
            'info',
            f"{name} is your biggest expense at {format_currency(amount)}.",
            rule='top_category',
        ))

    threshold = expenses['Abs Amount'].mean() * policy.large_transaction_multiple
    large = expenses[expenses['Abs Amount'] > threshold]
    large = large.sort_values('Abs Amount', ascending=False, kind='mergesort').head(int(policy.max_large_transactions))
    for _, row in large.iterrows():
        when = row['Transaction Date']
        suffix = f" on {when.strftime('%b %d, %Y')}" if pd.notna(when) else ''
        insights.append(Insight(
            'info',
            f"Unusually large expense: {row['Description'] or 'Unnamed'} "
            f"({format_currency(float(row['Abs Amount']))}){suffix}.",
            rule='large_transaction',
        ))
    return insights


def _latest_month_pair(selected_months: Optional[Iterable[Any]]):
    keys = sorted({k for k in (month_key(m) for m in selected_months or []) if k})
    if len(keys) < 2:
        return None
    return keys[-2], keys[-1]


def month_over_month_insight(transactions: Iterable[Any], selected_months: Optional[Iterable[Any]],
                             policy: InsightPolicy, income_category: Optional[str] = None) -> List[Insight]:
    """Compare spending between the two most recent selected months."""
    pair = _latest_month_pair(selected_months)
    if pair is None:
        return []
    previous, latest = pair

    expenses = expense_rows(transactions_frame(transactions), income_category)
    spend = expenses.groupby('Month')['Abs Amount'].sum()
    before = float(spend.get(previous, 0.0))
    after = float(spend.get(latest, 0.0))
    if before <= 0:
        return []

    change = (after - before) / before * 100.0
    if change >= policy.spending_change_percent:
        return [Insight(
            'warning',
            f"Spending rose {format_percent(change)} from {_month_label(previous)} to {_month_label(latest)} "
            f"({format_currency(before)} to {format_currency(after)}).",
            rule='month_over_month',
        )]
    if change <= -policy.spending_change_percent:
        return [Insight(
            'success',
            f"Spending fell {format_percent(-change)} from {_month_label(previous)} to {_month_label(latest)} "
            f"({format_currency(before)} to {format_currency(after)}).",
            rule='month_over_month',
        )]
    return []


def category_trend_insights(transactions: Iterable[Any], selected_months: Optional[Iterable[Any]],
                            policy: InsightPolicy, income_category: Optional[str] = None) -> List[Insight]:
    """Per-category spending swings between the two most recent selected months.

    A category needs spending in the earlier month to be compared; changes
    strictly beyond ``category_change_percent`` are reported, rises as
    warnings and falls as successes.
    """
    pair = _latest_month_pair(selected_months)
    if pair is None:
        return []
    previous, latest = pair

    expenses = expense_rows(transactions_frame(transactions), income_category)
    expenses = expenses[expenses['Month'].isin([previous, latest])]
    if expenses.empty:
        return []
    names = expenses.groupby('Category Key')['Category'].first()
    totals = expenses.pivot_table(index='Category Key', columns='Month', values='Abs Amount',
                                  aggfunc='sum', fill_value=0.0)

    insights = []
    for key, row in totals.iterrows():
        before = float(row.get(previous, 0.0))
        after = float(row.get(latest, 0.0))
        if before <= 0:
            continue
        change = (after - before) / before * 100.0
        if abs(change) <= policy.category_change_percent:
            continue
        name = names.get(key) or 'Uncategorized'
        direction = 'increased' if change > 0 else 'decreased'
        insights.append(Insight(
            'warning' if change > 0 else 'success',
            f"Your {name} spending {direction} by {format_percent(abs(change))} "
            f"compared to {_month_label(previous)}.",
            rule='category_trend',
        ))
    return insights


# ------------------------------------------------------------------- synthesis

def synthesize_insights(
    transactions: Iterable[Any],
    goals: Iterable[Any],
    total_income: float,
    selected_months: Optional[Iterable[Any]] = None,
    now: Optional[datetime] = None,
    policy: Optional[InsightPolicy] = None,
    income_category: Optional[str] = None,
) -> List[Insight]:
    """Produce every applicable insight for the current state.

    Args:
        transactions: The budget's transactions; window-based rules restrict
            them to ``selected_months`` themselves
        goals: FinancialGoal objects or their dictionaries
        total_income: Income for the active window
        selected_months: ``YYYY-MM`` keys (or dates) of the active window
        now: Clock for deadline and year-to-date rules
        policy: Rule thresholds (configured defaults if None)
        income_category: Name of the income category

    Returns:
        List of Insight; rules lacking inputs contribute nothing
    """
    now = now or datetime.now()
    policy = policy or InsightPolicy.from_config()
    transactions = list(transactions or [])
    goals = [_as_goal(g) for g in goals or []]
    selected = [m for m in selected_months or []]
    total_income = float(total_income or 0.0)

    window = transactions_frame(filter_by_months(transactions, selected))
    months_count = len({k for k in (month_key(m) for m in selected) if k}) or None
    rate = savings_rate(goals, transactions, total_income, now, income_category)

    insights: List[Insight] = []
    insights.extend(smart_goal_suggestions(window, goals, total_income, rate, policy, months_count, income_category))
    insights.extend(goal_lifecycle_insights(goals, now, policy))
    insights.extend(savings_rate_insight(rate, policy))
    insights.extend(top_category_insights(window, total_income, policy, income_category))
    insights.extend(month_over_month_insight(transactions, selected, policy, income_category))
    insights.extend(category_trend_insights(transactions, selected, policy, income_category))

    logger.debug("Synthesized %d insights from %d transactions and %d goals",
                 len(insights), len(transactions), len(goals))
    return insights


def group_insights(insights: Iterable[Insight]) -> Dict[str, List[Insight]]:
    """Group insights by type in display order: warnings, successes, then info."""
    grouped: Dict[str, List[Insight]] = {kind: [] for kind in INSIGHT_TYPES}
    for insight in insights:
        grouped.setdefault(insight.type, []).append(insight)
    return grouped
