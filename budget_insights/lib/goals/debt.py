"""Debt amortization helpers for Debt-category goals."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Optional

from ...models import FinancialGoal

DEFAULT_LOAN_TERM = 36


def monthly_rate(annual_rate: float, compounding_frequency: str = 'monthly') -> float:
    """Convert an annual percentage rate into an effective monthly rate.

    Example:
        >>> round(monthly_rate(12.0), 4)
        0.01
    """
    r = (annual_rate or 0.0) / 100.0
    if compounding_frequency == 'quarterly':
        return (1 + r / 4) ** (1 / 3) - 1
    if compounding_frequency == 'annually':
        return (1 + r) ** (1 / 12) - 1
    return r / 12


def monthly_payment(principal: float, annual_rate: float, term_months: int = DEFAULT_LOAN_TERM,
                    compounding_frequency: str = 'monthly') -> float:
    """Level payment that clears ``principal`` in ``term_months`` payments.

    Uses PMT = r * PV / (1 - (1 + r) ** -n); without interest the principal
    is simply divided over the term. Non-positive terms fall back to 36 months.
    """
    if not term_months or term_months <= 0:
        term_months = DEFAULT_LOAN_TERM
    if principal <= 0:
        return 0.0
    rate = monthly_rate(annual_rate, compounding_frequency)
    if rate <= 0:
        return principal / term_months
    return rate * principal / (1 - (1 + rate) ** -term_months)


def months_to_payoff(principal: float, annual_rate: float, payment: float,
                     compounding_frequency: str = 'monthly') -> Optional[int]:
    """Number of payments of ``payment`` needed to clear ``principal``.

    Returns 0 for a cleared balance and None when the payment never covers
    the interest.
    """
    if principal <= 0:
        return 0
    if payment <= 0:
        return None
    rate = monthly_rate(annual_rate, compounding_frequency)
    if rate <= 0:
        return int(math.ceil(principal / payment))
    if payment <= rate * principal:
        return None
    return int(math.ceil(-math.log(1 - rate * principal / payment) / math.log(1 + rate)))


def months_between(start: datetime, end: datetime) -> int:
    """Whole calendar months from ``start`` to ``end`` (negative when end is earlier)."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def required_payment(goal: FinancialGoal, now: Optional[datetime] = None) -> Optional[float]:
    """Monthly payment that clears a debt goal's remaining balance on time.

    A configured loan term takes precedence over the deadline. When no months
    remain the whole balance is due as a lump sum. Returns None for non-debt
    goals, cleared balances or an unparseable deadline.
    """
    if goal.category != 'Debt':
        return None
    balance = goal.target_amount - goal.current_amount
    if balance <= 0:
        return None
    rate = goal.interest_rate or 0.0
    if goal.loan_term:
        return monthly_payment(balance, rate, goal.loan_term, goal.compounding_frequency)

    deadline = goal.deadline_at
    if deadline is None:
        return None
    months = months_between(now or datetime.now(), deadline)
    if months <= 0:
        return balance
    return monthly_payment(balance, rate, months, goal.compounding_frequency)
