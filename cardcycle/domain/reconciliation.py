"""Statement balance reconciliation against payments posted after statement close"""

from typing import Iterable, Optional

from cardcycle.domain.models import Card, Reconciliation, Transaction
from cardcycle.domain.payments import is_payment
from cardcycle.domain.rules import CycleRules, DEFAULT_RULES


def payments_after_statement(
    card: Card,
    transactions: Iterable[Transaction],
    rules: CycleRules = DEFAULT_RULES,
) -> int:
    """Sum of payment credits (negative amounts) dated strictly after the statement date"""
    if card.last_statement_date is None:
        return 0
    return sum(
        abs(t.amount_cents)
        for t in transactions
        if t.date > card.last_statement_date
        and t.amount_cents < 0
        and is_payment(t.description, rules)
    )


def reconcile_statement_balance(
    card: Card,
    transactions: Iterable[Transaction],
    rules: CycleRules = DEFAULT_RULES,
) -> Optional[Reconciliation]:
    """
    Compute how much of the last statement balance is still owed.

    The aggregator's current balance is a live snapshot that already reflects
    payments made since the statement closed, while the statement balance is
    frozen. If the current balance is at least the statement balance, no
    payment has landed and the statement balance stands. Otherwise payments
    posted after the close are subtracted (floored at zero).

    An unknown current balance is treated as "payments may have landed".

    Returns None when the card has no last statement balance or date.
    """
    if card.last_statement_balance_cents is None or card.last_statement_date is None:
        return None

    original = abs(card.last_statement_balance_cents)

    if card.balance_current_cents is not None and abs(card.balance_current_cents) >= original:
        return Reconciliation(
            original_balance_cents=original,
            total_payments_cents=0,
            remaining_balance_cents=original,
        )

    total_payments = payments_after_statement(card, transactions, rules)
    return Reconciliation(
        original_balance_cents=original,
        total_payments_cents=total_payments,
        remaining_balance_cents=max(0, original - total_payments),
    )
