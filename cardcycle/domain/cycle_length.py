"""Billing cycle length estimation from statement and due dates"""

from datetime import date
from typing import Optional

from cardcycle.domain.rules import CycleRules, DEFAULT_RULES
from cardcycle.utils.date_utils import days_between


def grace_period_days(statement_date: Optional[date], due_date: Optional[date]) -> Optional[int]:
    """Days from statement close to payment due, or None if either date is missing"""
    if statement_date is None or due_date is None:
        return None
    return days_between(statement_date, due_date)


def estimate_cycle_length(
    statement_date: Optional[date],
    due_date: Optional[date],
    rules: CycleRules = DEFAULT_RULES,
) -> int:
    """
    Infer the nominal number of days in a billing cycle.

    The grace period is only a proxy: issuers cluster into 30- or 31-day
    periods, so the grace span is bucketed rather than used directly.

    Buckets (inclusive, configurable):
    - 20-25 day grace: 30-day cycle
    - 26-32 day grace: 31-day cycle
    - anything else (or missing dates): default length
    """
    grace = grace_period_days(statement_date, due_date)
    if grace is None:
        return rules.default_cycle_length_days

    low_30, high_30 = rules.grace_30_day_range
    low_31, high_31 = rules.grace_31_day_range
    if low_30 <= grace <= high_30:
        return 30
    elif low_31 <= grace <= high_31:
        return 31
    return rules.default_cycle_length_days
