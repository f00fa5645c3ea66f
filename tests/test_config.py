import copy

import pytest

from budget_insights.lib.budgets import PlanPolicy
from budget_insights.lib.budgets import calculations
from budget_insights.lib.common import format_currency, format_percent, safe_filename
from budget_insights.lib.config import get_budget_config, get_config_value, load_config
from budget_insights.lib.insights import InsightPolicy
from budget_insights.models import BudgetPreferences, default_ratios


def test_budget_config_sections():
    config = get_budget_config()
    for section in ('constants', 'default_ratios', 'default_categories', 'keywords', 'plan', 'insights'):
        assert section in config


def test_missing_config_file():
    with pytest.raises(FileNotFoundError):
        load_config('does_not_exist')


def test_get_config_value():
    assert get_config_value('budgets', 'constants', 'income_category') == 'Income'
    assert get_config_value('budgets', 'constants', 'nope', default='x') == 'x'
    assert get_config_value('missing', 'a', default=1) == 1


def test_default_ratios():
    assert default_ratios() == {'essentials': 50, 'wants': 30, 'savings': 20}
    assert BudgetPreferences().ratios == default_ratios()


def test_policies_read_configured_thresholds():
    plan = PlanPolicy.from_config()
    insights = InsightPolicy.from_config()
    assert plan.overspend_notice_ratio == 0.10
    assert plan.overspend_alert_ratio == 0.25
    assert insights.large_transaction_multiple == 2
    assert insights.spending_change_percent == 10
    assert insights.category_change_percent == 20
    assert insights.debt_keywords == ['debt', 'loan']


def test_plan_policy_can_be_overridden_through_config(monkeypatch):
    config = copy.deepcopy(get_budget_config())
    config['plan']['overspend_alert_ratio'] = 0.5
    monkeypatch.setattr(calculations, 'get_budget_config', lambda: config)
    assert PlanPolicy.from_config().overspend_alert_ratio == 0.5


def test_formatting_helpers():
    assert format_currency(1234.5) == '$1,234.50'
    assert format_currency(-50) == '-$50.00'
    assert format_percent(19.96) == '20.0%'


def test_safe_filename():
    assert safe_filename('Household Budget 2024!') == 'Household_Budget_2024'
    assert safe_filename('../../etc', default='budget') == 'etc'
    assert safe_filename('', default='user') == 'user'


def test_safe_filename_keeps_long_identifiers_whole():
    name = 'household-' * 30
    assert safe_filename(name) == name


def test_storage_root_is_under_data_dir():
    from budget_insights import config
    assert config.USERS_DIR == config.DATA_DIR / 'users'
    assert config.DEFAULT_BUDGET_ID
