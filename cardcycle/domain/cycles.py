"""Billing cycle construction - pure pipeline from card + transactions to cycle drafts"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional

from cardcycle.domain.exceptions import InvalidCycleWindowError
from cardcycle.domain.models import (
    BillingCycleDraft,
    Card,
    CycleWindow,
    Reconciliation,
    Transaction,
    CYCLE_OPEN,
    CYCLE_CLOSED,
    CYCLE_ESTIMATED,
    CYCLE_HISTORICAL,
)
from cardcycle.domain.payment_status import assign_payment_statuses
from cardcycle.domain.reconciliation import reconcile_statement_balance
from cardcycle.domain.rules import CycleRules, DEFAULT_RULES
from cardcycle.domain.spend import aggregate_spend
from cardcycle.domain.windows import fallback_reason, generate_fallback_window, generate_windows
from cardcycle.utils.date_utils import days_between

REASON_INVALID_WINDOWS = "invalid_windows"


@dataclass
class CycleBuildResult:
    """Drafts plus the diagnostics gathered while building them"""

    cycles: List[BillingCycleDraft] = field(default_factory=list)
    fallback_reason: Optional[str] = None
    reconciliation: Optional[Reconciliation] = None
    history_shortfall: bool = False


def estimate_minimum_payment(statement_cents: int, rules: CycleRules = DEFAULT_RULES) -> int:
    """Typical issuer minimum: max($25, 2% of balance), never above the balance itself"""
    if statement_cents <= 0:
        return 0
    estimate = max(
        rules.estimated_minimum_payment_floor_cents,
        int(round(statement_cents * rules.estimated_minimum_payment_rate)),
    )
    return min(estimate, statement_cents)


def detect_history_shortfall(
    windows: List[CycleWindow],
    transactions: List[Transaction],
    rules: CycleRules = DEFAULT_RULES,
) -> bool:
    """
    True when few historical cycles were produced although transactions reach
    back at least one full cycle before the oldest window.

    Usually means a wrong open date or a stale statement anchor trimmed real history.
    """
    historical = sum(1 for w in windows if w.kind == CYCLE_HISTORICAL)
    if historical >= rules.min_expected_history_cycles or not windows or not transactions:
        return False

    oldest_start = windows[-1].start
    earliest = min(t.date for t in transactions)
    return days_between(earliest, oldest_start) >= rules.default_cycle_length_days


def build_billing_cycles(
    card: Card,
    transactions: Iterable[Transaction],
    as_of: date,
    rules: CycleRules = DEFAULT_RULES,
) -> CycleBuildResult:
    """
    Derive every billing cycle for a card as of a given date.

    Steps:
    1. Generate windows (falls back to one estimated window on bad inputs)
    2. Aggregate spend for each window
    3. Reconcile the last statement balance on the most recent closed window
    4. Estimate historical statement balances and minimum payments from spend
    5. Assign payment statuses

    Returns drafts newest first; the card must already carry any open-date correction.
    """
    transactions = sorted(transactions, key=lambda t: (t.date, t.transaction_id))
    result = CycleBuildResult(fallback_reason=fallback_reason(card, as_of))

    try:
        windows = generate_windows(card, as_of, rules)
    except InvalidCycleWindowError as e:
        logging.error(
            f"Invalid cycle windows, degrading to fallback: {e}",
            extra={"card_id": card.card_id},
        )
        result.fallback_reason = REASON_INVALID_WINDOWS
        windows = [generate_fallback_window(as_of, rules, card.open_date)]

    for window in windows:
        spend = aggregate_spend(window, transactions, as_of, rules)

        if window.kind in (CYCLE_OPEN, CYCLE_ESTIMATED):
            statement_balance = None
            minimum_payment = None
            remaining = None
        elif window.kind == CYCLE_CLOSED:
            result.reconciliation = reconcile_statement_balance(card, transactions, rules)
            if result.reconciliation is not None:
                statement_balance = result.reconciliation.original_balance_cents
                remaining = result.reconciliation.remaining_balance_cents
                # A fully paid statement has no minimum due
                minimum_payment = 0 if result.reconciliation.fully_paid else card.minimum_payment_cents
            else:
                statement_balance = spend.total_spend_cents
                remaining = None
                minimum_payment = estimate_minimum_payment(statement_balance, rules)
        else:
            statement_balance = spend.total_spend_cents
            remaining = None
            minimum_payment = estimate_minimum_payment(statement_balance, rules)

        result.cycles.append(
            BillingCycleDraft(
                kind=window.kind,
                start_date=window.start,
                end_date=window.end,
                due_date=window.due_date,
                statement_balance_cents=statement_balance,
                minimum_payment_cents=minimum_payment,
                total_spend_cents=spend.total_spend_cents,
                transaction_count=spend.transaction_count,
                remaining_balance_cents=remaining,
            )
        )

    assign_payment_statuses(result.cycles, card)
    result.history_shortfall = detect_history_shortfall(windows, transactions, rules)
    return result
