"""Spend aggregation per billing cycle window"""

from datetime import date
from typing import Iterable, List

from cardcycle.domain.models import CycleWindow, SpendSummary, Transaction
from cardcycle.domain.payments import is_payment
from cardcycle.domain.rules import CycleRules, DEFAULT_RULES


def transactions_in_window(
    window: CycleWindow,
    transactions: Iterable[Transaction],
    as_of: date,
) -> List[Transaction]:
    """Transactions dated within [start, min(end, as_of)]; open cycles cannot hold future-dated spend"""
    effective_end = min(window.end, as_of)
    return [t for t in transactions if window.start <= t.date <= effective_end]


def aggregate_spend(
    window: CycleWindow,
    transactions: Iterable[Transaction],
    as_of: date,
    rules: CycleRules = DEFAULT_RULES,
) -> SpendSummary:
    """
    Total spend and transaction count for one window, excluding payments.

    Amounts are summed as absolute values. An empty window yields (0, 0).
    """
    spend = [
        t for t in transactions_in_window(window, transactions, as_of)
        if not is_payment(t.description, rules)
    ]
    return SpendSummary(
        total_spend_cents=sum(abs(t.amount_cents) for t in spend),
        transaction_count=len(spend),
    )
