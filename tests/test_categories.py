import pytest

from budget_insights.exceptions import AllocationError, CategoryError, ValidationError
from budget_insights.lib.budgets import (
    add_category,
    default_categories,
    delete_category,
    find_category,
    set_category_percentage,
    unallocated_percentage,
    update_category,
)
from budget_insights.models import Category


def test_default_categories():
    categories = default_categories()
    assert [c.name for c in categories] == ['Essentials', 'Wants', 'Savings', 'Income']
    assert all(c.is_default for c in categories)
    assert [c.name for c in categories if c.is_income] == ['Income']
    assert unallocated_percentage(categories) == 0


def test_add_category_returns_new_list():
    categories = default_categories()
    result = add_category(categories, Category('Pets', is_default=True))

    assert len(categories) == 4
    added = find_category(result, 'pets')
    assert added is not None
    assert added.is_default is False


def test_add_category_with_taken_id_gets_unique_id():
    categories = default_categories()
    result = add_category(categories, Category('Pet Care', id='wants'))
    added = result[-1]
    assert added.name == 'Pet Care'
    assert added.id != 'wants'
    assert added.id.startswith('pet-care-')


@pytest.mark.parametrize('name', ['', '   ', None])
def test_add_category_rejects_empty_name(name):
    with pytest.raises(CategoryError, match='cannot be empty'):
        add_category(default_categories(), Category(name))


def test_add_category_rejects_duplicate_name_case_insensitively():
    with pytest.raises(CategoryError, match='already exists'):
        add_category(default_categories(), Category(' essentials '))


def test_add_category_rejects_over_allocation():
    with pytest.raises(AllocationError) as excinfo:
        add_category(default_categories(), Category('Pets', percentage=5))
    assert excinfo.value.total == 105
    assert 'exceeds 100%' in str(excinfo.value)


def test_set_percentage_within_limit():
    categories = default_categories()
    categories = set_category_percentage(categories, 'essentials', 40)
    assert find_category(categories, 'essentials').percentage == 40
    assert unallocated_percentage(categories) == 10


def test_set_percentage_over_limit_is_not_applied():
    categories = default_categories()
    with pytest.raises(AllocationError) as excinfo:
        set_category_percentage(categories, 'essentials', 60)
    assert excinfo.value.total == 110
    assert find_category(categories, 'essentials').percentage == 50


def test_set_percentage_out_of_range():
    with pytest.raises(AllocationError):
        set_category_percentage(default_categories(), 'wants', -5)


def test_default_category_can_be_renamed_and_recolored():
    result = update_category(default_categories(), 'wants', name='Fun', color='#000000')
    fun = find_category(result, 'wants')
    assert fun.name == 'Fun'
    assert fun.color == '#000000'
    assert fun.is_default


def test_protected_fields_cannot_change():
    with pytest.raises(CategoryError):
        update_category(default_categories(), 'income', is_income=False)


def test_rename_to_existing_name_rejected():
    with pytest.raises(CategoryError, match='already exists'):
        update_category(default_categories(), 'wants', name='SAVINGS')


def test_default_category_cannot_be_deleted():
    with pytest.raises(CategoryError, match='Cannot delete default category'):
        delete_category(default_categories(), 'savings')


def test_custom_category_can_be_deleted():
    categories = add_category(default_categories(), Category('Pets'))
    result = delete_category(categories, 'pets')
    assert [c.id for c in result] == ['essentials', 'wants', 'savings', 'income']


def test_unknown_category():
    with pytest.raises(CategoryError, match='not found'):
        delete_category(default_categories(), 'missing')


def test_validation_errors_are_value_errors():
    assert issubclass(AllocationError, ValidationError)
    assert issubclass(CategoryError, ValueError)
