"""Core data model for the budget insight engine.

Transactions, categories, preferences and goals arrive from the storage and
UI collaborators as plain dictionaries (camelCase or snake_case keys); the
``from_dict`` constructors normalise both. Summary, plan and insight objects
are derived values and are never stored authoritatively.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Union

import pandas as pd

from .lib.config import get_budget_config

TRANSACTION_TYPES = ('income', 'expense')
INSIGHT_TYPES = ('warning', 'success', 'info')
ALLOCATION_MODES = ('ratio', 'percentage')
COMPOUNDING_FREQUENCIES = ('monthly', 'quarterly', 'annually')


def _constants() -> Dict[str, Any]:
    return get_budget_config()['constants']


def default_ratios() -> Dict[str, float]:
    """Default Essentials/Wants/Savings split from configuration (50/30/20)."""
    return {k: float(v) for k, v in get_budget_config()['default_ratios'].items()}


def goal_categories() -> List[str]:
    return list(_constants()['goal_categories'])


def parse_date(value: Any) -> Optional[datetime]:
    """Parse a date-like value into a naive ``datetime``.

    Returns None for empty or unparseable input instead of raising.
    Timezone-aware values are converted to UTC and made naive.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        ts = pd.Timestamp(value)
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert(None)
    return ts.to_pydatetime()


def _iso(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _to_float(value: Any, default: float = 0.0) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    return default if pd.isna(result) else result


def slugify(name: str) -> str:
    slug = re.sub(r'[^a-z0-9]+', '-', (name or '').lower()).strip('-')
    return slug or 'category'


@dataclass
class Transaction:
    """A single income or expense entry belonging to one budget."""
    description: str
    amount: float
    date: Any = None
    category: str = ''
    type: str = ''
    id: Optional[str] = None

    def __post_init__(self) -> None:
        self.description = '' if self.description is None else str(self.description)
        self.amount = _to_float(self.amount)
        self.category = '' if self.category is None else str(self.category).strip()
        kind = (self.type or '').strip().lower()
        if kind not in TRANSACTION_TYPES:
            kind = 'income' if self.amount > 0 else 'expense'
        self.type = kind

    @property
    def timestamp(self) -> Optional[datetime]:
        return parse_date(self.date)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Transaction':
        return cls(
            description=_pick(data, 'description', 'Description', default=''),
            amount=_pick(data, 'amount', 'Amount', default=0.0),
            date=_pick(data, 'date', 'Transaction Date'),
            category=_pick(data, 'category', 'Category', default=''),
            type=_pick(data, 'type', 'Type', default=''),
            id=_pick(data, 'id'),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload['date'] = _iso(self.date)
        return payload


@dataclass
class Category:
    """A budget category; names are unique case-insensitively within a budget."""
    name: str
    id: str = ''
    color: str = '#9e9e9e'
    icon: str = ''
    is_default: bool = False
    is_income: bool = False
    percentage: Optional[float] = None

    def __post_init__(self) -> None:
        self.name = '' if self.name is None else str(self.name)
        if not self.id:
            self.id = slugify(self.name)
        if self.percentage is not None:
            self.percentage = _to_float(self.percentage)

    @property
    def key(self) -> str:
        return self.name.strip().lower()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Category':
        return cls(
            name=_pick(data, 'name', default=''),
            id=_pick(data, 'id', default=''),
            color=_pick(data, 'color', default='#9e9e9e'),
            icon=_pick(data, 'icon', default=''),
            is_default=bool(_pick(data, 'is_default', 'isDefault', default=False)),
            is_income=bool(_pick(data, 'is_income', 'isIncome', default=False)),
            percentage=_pick(data, 'percentage'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BudgetPreferences:
    """Per-user budget settings driving the plan calculator."""
    ratios: Dict[str, float] = field(default_factory=default_ratios)
    category_customization: Dict[str, Dict[str, str]] = field(default_factory=dict)
    chart_preferences: Dict[str, Any] = field(default_factory=dict)
    display_preferences: Dict[str, Any] = field(default_factory=dict)
    allocation_mode: str = 'ratio'

    def __post_init__(self) -> None:
        self.ratios = {str(k).strip().lower(): _to_float(v) for k, v in (self.ratios or {}).items()}
        if self.allocation_mode not in ALLOCATION_MODES:
            self.allocation_mode = 'ratio'

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'BudgetPreferences':
        data = data or {}
        ratios = _pick(data, 'ratios')
        return cls(
            ratios=dict(ratios) if isinstance(ratios, Mapping) else default_ratios(),
            category_customization=dict(_pick(data, 'category_customization', 'categoryCustomization', default={})),
            chart_preferences=dict(_pick(data, 'chart_preferences', 'chartPreferences', default={})),
            display_preferences=dict(_pick(data, 'display_preferences', 'displayPreferences', default={})),
            allocation_mode=_pick(data, 'allocation_mode', 'allocationMode', default='ratio'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RatioAllocation:
    """Targets expressed as ratios over the canonical Essentials/Wants/Savings buckets."""
    ratios: Dict[str, float]
    kind: ClassVar[str] = 'ratio'

    @property
    def targets(self) -> Dict[str, float]:
        return dict(self.ratios)

    def bucket_for(self, category_name: str) -> Optional[str]:
        key = (category_name or '').strip().lower()
        return key if key in self.ratios else None


@dataclass
class PercentageAllocation:
    """Targets expressed as per-category percentages of income."""
    percentages: Dict[str, float]
    kind: ClassVar[str] = 'percentage'

    @property
    def targets(self) -> Dict[str, float]:
        return dict(self.percentages)

    def bucket_for(self, category_name: str) -> Optional[str]:
        key = (category_name or '').strip().lower()
        for name in self.percentages:
            if name.strip().lower() == key:
                return name
        return None


Allocation = Union[RatioAllocation, PercentageAllocation]


@dataclass
class FinancialGoal:
    """A user-defined savings, debt, investment or custom target."""
    name: str
    target_amount: float
    deadline: str
    category: str = 'Savings'
    current_amount: float = 0.0
    id: str = ''
    created_at: str = ''
    last_updated: Optional[str] = None
    notes: str = ''
    interest_rate: Optional[float] = None
    compounding_frequency: str = 'monthly'
    loan_term: Optional[int] = None

    def __post_init__(self) -> None:
        self.name = '' if self.name is None else str(self.name)
        self.target_amount = _to_float(self.target_amount)
        self.current_amount = _to_float(self.current_amount)
        self.deadline = _iso(self.deadline) or ''
        self.created_at = _iso(self.created_at) or ''
        self.last_updated = _iso(self.last_updated)
        category = (self.category or '').strip()
        for known in goal_categories():
            if known.lower() == category.lower():
                category = known
                break
        self.category = category
        if self.interest_rate is not None:
            self.interest_rate = _to_float(self.interest_rate)
        if self.compounding_frequency not in COMPOUNDING_FREQUENCIES:
            self.compounding_frequency = 'monthly'
        if self.loan_term is not None:
            self.loan_term = int(_to_float(self.loan_term))

    @property
    def is_manually_tracked(self) -> bool:
        manual = {c.lower() for c in _constants()['manual_goal_categories']}
        return self.category.lower() in manual

    @property
    def deadline_at(self) -> Optional[datetime]:
        return parse_date(self.deadline)

    @property
    def created(self) -> Optional[datetime]:
        return parse_date(self.created_at)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'FinancialGoal':
        return cls(
            name=_pick(data, 'name', default=''),
            target_amount=_pick(data, 'target_amount', 'targetAmount', default=0.0),
            deadline=_pick(data, 'deadline', default=''),
            category=_pick(data, 'category', default='Savings'),
            current_amount=_pick(data, 'current_amount', 'currentAmount', default=0.0),
            id=_pick(data, 'id', default=''),
            created_at=_pick(data, 'created_at', 'createdAt', default=''),
            last_updated=_pick(data, 'last_updated', 'lastUpdated'),
            notes=_pick(data, 'notes', default=''),
            interest_rate=_pick(data, 'interest_rate', 'interestRate'),
            compounding_frequency=_pick(data, 'compounding_frequency', 'compoundingFrequency', default='monthly'),
            loan_term=_pick(data, 'loan_term', 'loanTerm'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Insight:
    """A short classified message for the dashboard; recomputed, never stored."""
    type: str
    message: str
    action: Optional[str] = None
    rule: str = ''

    def to_dict(self) -> Dict[str, Any]:
        payload = {'type': self.type, 'message': self.message}
        if self.action:
            payload['action'] = self.action
        return payload


@dataclass
class BudgetSummary:
    total_income: float = 0.0
    total_expenses: float = 0.0
    net_cashflow: float = 0.0
    categories: Dict[str, float] = field(default_factory=dict)
    percentages: Dict[str, float] = field(default_factory=dict)


@dataclass
class BudgetPlan:
    income: float
    kind: str
    targets: Dict[str, float] = field(default_factory=dict)
    recommended: Dict[str, float] = field(default_factory=dict)
    actual: Dict[str, float] = field(default_factory=dict)
    difference: Dict[str, float] = field(default_factory=dict)
