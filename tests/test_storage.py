import json

import pytest

from budget_insights.lib.budgets import BudgetStore, default_categories
from budget_insights.models import BudgetPreferences, FinancialGoal, Transaction


def _store(tmp_path):
    return BudgetStore(root=tmp_path)


def _goal(name, category='Debt', current=0.0):
    return FinancialGoal(name=name, target_amount=1000, deadline='2025-12-31', category=category,
                         current_amount=current)


def test_missing_collections_load_empty(tmp_path):
    store = _store(tmp_path)
    assert store.load_goals('alice') == []
    assert store.load_transactions('alice') == []
    assert store.load_categories('alice') == []
    assert store.load_preferences('alice') == BudgetPreferences()


def test_documents_live_under_user_and_budget(tmp_path):
    store = _store(tmp_path)
    store.add_goal('alice', _goal('Car'), budget_id='household')
    assert (tmp_path / 'alice' / 'household' / 'goals.json').exists()
    assert store.load_goals('alice') == []
    assert [g.name for g in store.load_goals('alice', budget_id='household')] == ['Car']


def test_add_assigns_ids(tmp_path):
    store = _store(tmp_path)
    first = store.add_goal('alice', _goal('Car'))
    second = store.add_goal('alice', _goal('Card'))
    assert first and second and first != second
    assert [g.id for g in store.load_goals('alice')] == [first, second]


def test_update_and_delete_goal(tmp_path):
    store = _store(tmp_path)
    goal_id = store.add_goal('alice', _goal('Car'))
    goal = store.load_goals('alice')[0]
    goal.notes = 'refinanced'

    assert store.update_goal('alice', goal)
    assert store.load_goals('alice')[0].notes == 'refinanced'
    assert store.delete_goal('alice', goal_id)
    assert not store.delete_goal('alice', goal_id)
    assert store.load_goals('alice') == []


def test_update_goals_progress_is_a_single_write(tmp_path, monkeypatch):
    store = _store(tmp_path)
    for name in ('Car', 'Card', 'Boat'):
        store.add_goal('alice', _goal(name))
    goals = store.load_goals('alice')
    goals[0].current_amount = 100
    goals[1].current_amount = 250

    writes = []
    original = store._write

    def counting_write(path, payload):
        writes.append(path)
        original(path, payload)

    monkeypatch.setattr(store, '_write', counting_write)
    written = store.update_goals_progress('alice', goals[:2])

    assert written == 2
    assert len(writes) == 1
    amounts = [g.current_amount for g in store.load_goals('alice')]
    assert amounts == [100, 250, 0]
    assert all(g.last_updated for g in store.load_goals('alice')[:2])


def test_update_goals_progress_skips_unknown_goals(tmp_path):
    store = _store(tmp_path)
    store.add_goal('alice', _goal('Car'))
    stray = _goal('Gone')
    stray.id = 'missing'
    assert store.update_goals_progress('alice', [stray]) == 0


def test_corrupt_file_loads_empty(tmp_path):
    store = _store(tmp_path)
    path = store.get_path('alice', 'goals')
    path.parent.mkdir(parents=True)
    path.write_text('{not json', encoding='utf-8')
    assert store.load_goals('alice') == []


def test_camel_case_documents_are_read(tmp_path):
    store = _store(tmp_path)
    path = store.get_path('alice', 'goals')
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps([{
        'id': 'g1', 'name': 'Loan', 'targetAmount': 5000, 'currentAmount': 1200,
        'deadline': '2026-01-01', 'category': 'debt', 'createdAt': '2025-01-01',
    }]), encoding='utf-8')

    goal = store.load_goals('alice')[0]
    assert goal.target_amount == 5000
    assert goal.current_amount == 1200
    assert goal.category == 'Debt'


def test_categories_round_trip(tmp_path):
    store = _store(tmp_path)
    store.save_categories('alice', default_categories())
    assert store.load_categories('alice') == default_categories()


def test_transactions_crud(tmp_path):
    store = _store(tmp_path)
    txn_id = store.add_transaction('alice', Transaction('Rent', -1500, '2025-01-03', category='Essentials'))
    stored = store.load_transactions('alice')[0]
    assert stored.id == txn_id
    assert stored.type == 'expense'

    stored.category = 'Wants'
    assert store.update_transaction('alice', stored)
    assert store.load_transactions('alice')[0].category == 'Wants'
    assert store.delete_transaction('alice', txn_id)


def test_preferences_round_trip(tmp_path):
    store = _store(tmp_path)
    prefs = BudgetPreferences(ratios={'Essentials': 60, 'Wants': 25, 'Savings': 15}, allocation_mode='percentage')
    store.save_preferences('alice', prefs)

    loaded = store.load_preferences('alice')
    assert loaded.ratios == {'essentials': 60, 'wants': 25, 'savings': 15}
    assert loaded.allocation_mode == 'percentage'


def test_user_id_is_required(tmp_path):
    with pytest.raises(ValueError):
        _store(tmp_path).load_goals('  ')


def test_write_failure_propagates(tmp_path):
    store = _store(tmp_path)
    blocker = tmp_path / 'alice'
    blocker.write_text('not a directory', encoding='utf-8')
    with pytest.raises(OSError):
        store.add_goal('alice', _goal('Car'))
