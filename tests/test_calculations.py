import pytest

from budget_insights.lib.budgets import (
    PlanPolicy,
    budget_health,
    budget_suggestions,
    build_plan,
    calculate_budget_summary,
    compute_plan,
    default_categories,
    monthly_bucket_trends,
    resolve_allocation,
)
from budget_insights.lib.common import filter_by_months
from budget_insights.models import (
    BudgetPreferences,
    BudgetSummary,
    Category,
    PercentageAllocation,
    RatioAllocation,
)

RATIOS = {'essentials': 50, 'wants': 30, 'savings': 20}


def _txn(description, amount, date='2025-01-15', category=''):
    return {'description': description, 'amount': amount, 'date': date, 'category': category}


def _plan_for(income, **actual):
    summary = BudgetSummary(total_income=income, categories=actual)
    return build_plan(summary, RatioAllocation(RATIOS)), summary


def test_recommended_amounts_follow_ratios():
    plan, _ = _plan_for(5000)
    assert plan.recommended == {'essentials': 2500, 'wants': 1500, 'savings': 1000}
    assert plan.kind == 'ratio'


def test_ratios_not_summing_to_100_are_used_as_given():
    summary = BudgetSummary(total_income=1000)
    plan = build_plan(summary, RatioAllocation({'essentials': 60, 'wants': 30, 'savings': 20}))
    assert plan.recommended == {'essentials': 600, 'wants': 300, 'savings': 200}


def test_zero_income_yields_zero_recommendations():
    plan, _ = _plan_for(0, Essentials=300)
    assert plan.recommended == {'essentials': 0, 'wants': 0, 'savings': 0}
    assert plan.difference['essentials'] == 300


def test_negative_income_never_gives_negative_recommendations():
    plan, _ = _plan_for(-200)
    assert all(amount >= 0 for amount in plan.recommended.values())


def test_summary_merges_category_spelling():
    transactions = [
        _txn('Paycheck', 5000, category='Income'),
        _txn('Rent', -1500, category='Essentials'),
        _txn('Groceries', -300, category='essentials'),
        _txn('Movie', -100, category='Wants'),
    ]
    summary = calculate_budget_summary(transactions)

    assert summary.total_income == 5000
    assert summary.total_expenses == 1900
    assert summary.net_cashflow == 3100
    assert summary.categories == {'Essentials': 1800, 'Wants': 100}
    assert summary.percentages['Essentials'] == pytest.approx(1800 / 1900 * 100)


def test_summary_of_nothing_is_empty():
    summary = calculate_budget_summary([])
    assert summary.total_income == 0
    assert summary.categories == {}


def test_difference_is_actual_minus_recommended():
    plan, _ = _plan_for(1000, Essentials=600, Wants=200, Savings=200)
    assert plan.actual == {'essentials': 600, 'wants': 200, 'savings': 200}
    assert plan.difference == {'essentials': 100, 'wants': -100, 'savings': 0}


def test_no_income_suggestion_only():
    result = compute_plan([_txn('Rent', -1500, category='Essentials')])
    assert result.plan.recommended == {'essentials': 0, 'wants': 0, 'savings': 0}
    assert len(result.suggestions) == 1
    assert result.suggestions[0].startswith('No income detected')


def test_overspend_suggestions_grow_with_the_overspend():
    policy = PlanPolicy()

    def wants_hints(actual):
        plan, summary = _plan_for(1000, Essentials=500, Wants=actual, Savings=200)
        return [s for s in budget_suggestions(plan, summary, policy) if 'on wants' in s]

    assert wants_hints(320) == []
    assert 'Consider reviewing' in wants_hints(340)[0]
    assert 'Reduce wants spending' in wants_hints(400)[0]


def test_underspend_is_praised():
    plan, summary = _plan_for(1000, Essentials=400, Wants=300, Savings=200)
    suggestions = budget_suggestions(plan, summary, PlanPolicy())
    assert any('less than the recommended amount on essentials' in s for s in suggestions)


def test_savings_shortfall_suggests_automatic_transfer():
    plan, summary = _plan_for(1000, Essentials=500, Wants=300, Savings=50)
    suggestions = budget_suggestions(plan, summary, PlanPolicy())
    assert any('automatic transfer' in s for s in suggestions)


def test_uncategorized_spending_notice():
    plan, summary = _plan_for(1000, Essentials=500, Wants=300, Savings=200, Uncategorized=150)
    suggestions = budget_suggestions(plan, summary, PlanPolicy())
    assert any('uncategorized' in s for s in suggestions)


def test_resolve_allocation_defaults_to_ratios():
    assert isinstance(resolve_allocation(), RatioAllocation)
    percentage_prefs = BudgetPreferences(allocation_mode='percentage')
    assert isinstance(resolve_allocation(percentage_prefs), RatioAllocation)
    assert isinstance(resolve_allocation(percentage_prefs, default_categories()), PercentageAllocation)


def test_percentage_plan_uses_category_names():
    categories = [
        Category('Essentials', is_default=True, percentage=40),
        Category('Wants', is_default=True, percentage=30),
        Category('Savings', is_default=True, percentage=20),
        Category('Income', is_default=True, is_income=True, percentage=0),
        Category('Pets', percentage=10),
    ]
    transactions = [
        _txn('Paycheck', 2000, category='Income'),
        _txn('Vet', -250, category='pets'),
    ]
    result = compute_plan(transactions, BudgetPreferences(allocation_mode='percentage'), categories)

    assert result.plan.kind == 'percentage'
    assert 'Income' not in result.plan.targets
    assert result.plan.recommended['Pets'] == 200
    assert result.plan.actual['Pets'] == 250
    assert result.plan.difference['Pets'] == 50


def test_compute_plan_applies_month_window():
    transactions = [
        _txn('Paycheck', 3000, '2025-01-01', 'Income'),
        _txn('Paycheck', 4000, '2025-02-01', 'Income'),
        _txn('Rent', -1000, '2025-02-03', 'Essentials'),
    ]
    result = compute_plan(transactions, months=['2025-02'])
    assert result.summary.total_income == 4000
    assert result.plan.actual['essentials'] == 1000


def test_filter_by_months_without_selection_keeps_everything():
    transactions = [_txn('A', -1, '2025-01-01'), _txn('B', -1, None)]
    assert len(filter_by_months(transactions, [])) == 2
    assert [t.description for t in filter_by_months(transactions, ['2025-01'])] == ['A']


def test_budget_health_on_plan():
    plan, _ = _plan_for(1000, Essentials=500, Wants=300, Savings=200)
    health = budget_health(plan, PlanPolicy())
    assert health.adherence_score == 40
    assert health.savings_score == 30
    assert health.total_score == 100
    assert health.recommendations == []


def test_budget_health_off_plan():
    plan, _ = _plan_for(1000, Essentials=700, Wants=300, Savings=0)
    health = budget_health(plan, PlanPolicy())
    assert health.adherence_score == 0
    assert health.savings_score == 0
    assert len(health.recommendations) == 2


def test_budget_health_without_income():
    health = budget_health(_plan_for(0)[0], PlanPolicy())
    assert health.total_score == 0


def test_monthly_bucket_trends():
    transactions = [
        _txn('Paycheck', 3000, '2025-01-01', 'Income'),
        _txn('Rent', -1000, '2025-01-03', 'Essentials'),
        _txn('Cinema', -50, '2025-02-10', 'Wants'),
        _txn('Mystery', -10, None, 'Wants'),
    ]
    trends = monthly_bucket_trends(transactions)

    assert list(trends.columns) == ['Month', 'Income', 'essentials', 'wants', 'savings']
    assert list(trends['Month']) == ['2025-01', '2025-02']
    assert list(trends['Income']) == [3000, 0]
    assert list(trends['essentials']) == [1000, 0]
    assert list(trends['wants']) == [0, 50]
