"""Detection and correction of implausible card open dates"""

from datetime import date
from typing import Iterable, Optional

from cardcycle.domain.models import Card, OpenDateCorrection, Transaction
from cardcycle.domain.rules import CycleRules, DEFAULT_RULES
from cardcycle.utils.date_utils import days_between, shift_days, subtract_months

METHOD_EARLIEST_TRANSACTION = "earliest_transaction"
METHOD_STATEMENT_DATE = "statement_date"
METHOD_DEFAULT_HORIZON = "default_horizon"


def earliest_transaction(transactions: Iterable[Transaction]) -> Optional[Transaction]:
    return min(transactions, key=lambda t: (t.date, t.transaction_id), default=None)


def correct_open_date(
    card: Card,
    earliest: Optional[Transaction],
    as_of: date,
    rules: CycleRules = DEFAULT_RULES,
) -> Optional[OpenDateCorrection]:
    """
    Return a corrected open date, or None if the reported one is plausible.

    Aggregator open dates are often absent, future-dated or off by years, and
    a wrong one corrupts historical cycle trimming.

    Rules:
    - Reported date more than threshold days away from the earliest
      transaction (either side): earliest transaction date minus the buffer
    - Reported date missing or after as_of: the same estimate if any
      transaction exists, else last statement date minus N months, else
      as_of minus the default horizon
    """
    reported = card.open_date

    if reported is not None and reported <= as_of:
        if earliest is None:
            return None
        # Threshold applies on either side of the earliest transaction
        if abs(days_between(reported, earliest.date)) <= rules.open_date_threshold_days:
            return None

    if earliest is not None:
        return OpenDateCorrection(
            corrected_date=shift_days(earliest.date, -rules.open_date_buffer_days),
            method=METHOD_EARLIEST_TRANSACTION,
            reported_date=reported,
        )

    if card.last_statement_date is not None:
        return OpenDateCorrection(
            corrected_date=subtract_months(card.last_statement_date, rules.open_date_statement_fallback_months),
            method=METHOD_STATEMENT_DATE,
            reported_date=reported,
        )

    return OpenDateCorrection(
        corrected_date=subtract_months(as_of, rules.open_date_default_fallback_months),
        method=METHOD_DEFAULT_HORIZON,
        reported_date=reported,
    )
