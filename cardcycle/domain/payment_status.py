"""Payment status assignment across a card's billing cycles"""

from typing import List

from cardcycle.domain.models import (
    BillingCycleDraft,
    Card,
    CYCLE_OPEN,
    CYCLE_CLOSED,
    CYCLE_ESTIMATED,
    STATUS_CURRENT,
    STATUS_DUE,
    STATUS_PAID,
    STATUS_OUTSTANDING,
)


def assign_payment_statuses(cycles: List[BillingCycleDraft], card: Card) -> List[BillingCycleDraft]:
    """
    Label each cycle (newest first) as current, due, paid or outstanding.

    - Open/estimated cycle: current
    - Most recent closed cycle: paid when nothing remains, otherwise due
    - Historical cycles: the part of the current balance not explained by the
      closed cycle's remaining amount and open-cycle spend is attributed to
      older cycles newest to oldest; cycles it reaches are outstanding
    """
    current_balance = abs(card.balance_current_cents or 0)
    closed_owed = 0
    open_spend = 0

    for cycle in cycles:
        if cycle.kind in (CYCLE_OPEN, CYCLE_ESTIMATED):
            cycle.payment_status = STATUS_CURRENT
            open_spend += cycle.total_spend_cents
        elif cycle.kind == CYCLE_CLOSED:
            owed = cycle.remaining_balance_cents
            if owed is None:
                owed = cycle.statement_balance_cents or 0
            cycle.payment_status = STATUS_PAID if owed == 0 else STATUS_DUE
            closed_owed += owed

    unpaid = current_balance - closed_owed - open_spend
    for cycle in cycles:
        if cycle.payment_status is not None:
            continue
        balance = cycle.statement_balance_cents or 0
        if balance == 0 or unpaid <= 0:
            cycle.payment_status = STATUS_PAID
        else:
            cycle.payment_status = STATUS_OUTSTANDING
            unpaid -= balance

    return cycles
