"""Insight synthesis from transactions, goals and income."""

from .synthesizer import (
    InsightPolicy,
    year_to_date_income,
    savings_rate,
    savings_rate_insight,
    average_monthly_spend,
    smart_goal_suggestions,
    goal_lifecycle_insights,
    top_category_insights,
    month_over_month_insight,
    category_trend_insights,
    synthesize_insights,
    group_insights,
)

__all__ = [
    'InsightPolicy',
    'year_to_date_income',
    'savings_rate',
    'savings_rate_insight',
    'average_monthly_spend',
    'smart_goal_suggestions',
    'goal_lifecycle_insights',
    'top_category_insights',
    'month_over_month_insight',
    'category_trend_insights',
    'synthesize_insights',
    'group_insights',
]
