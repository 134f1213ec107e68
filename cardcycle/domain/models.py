"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

# Cycle kinds
CYCLE_OPEN = "open"
CYCLE_CLOSED = "closed"
CYCLE_HISTORICAL = "historical"
CYCLE_ESTIMATED = "estimated"

# Payment statuses
STATUS_CURRENT = "current"
STATUS_DUE = "due"
STATUS_PAID = "paid"
STATUS_OUTSTANDING = "outstanding"


@dataclass
class Card:
    """Credit card account snapshot as last synced from the aggregator"""

    card_id: str
    name: str = ""
    balance_current_cents: Optional[int] = None  # abs value = amount owed
    available_credit_cents: Optional[int] = None
    reported_limit_cents: Optional[int] = None  # may arrive zero or negative
    manual_limit_cents: Optional[int] = None
    last_statement_balance_cents: Optional[int] = None
    last_statement_date: Optional[date] = None
    next_payment_due_date: Optional[date] = None
    open_date: Optional[date] = None
    open_date_source: Optional[str] = None
    minimum_payment_cents: Optional[int] = None


@dataclass
class Transaction:
    """Card transaction from the aggregator feed (positive = charge, negative = credit)"""

    transaction_id: str
    date: date
    amount_cents: int
    description: str
    authorized_date: Optional[date] = None


@dataclass
class AccountSnapshot:
    """Balances and statement metadata reported by the aggregator for one card"""

    card_id: str
    name: str
    balance_current_cents: Optional[int]
    available_credit_cents: Optional[int]
    reported_limit_cents: Optional[int]
    last_statement_balance_cents: Optional[int]
    last_statement_date: Optional[date]
    next_payment_due_date: Optional[date]
    minimum_payment_cents: Optional[int]
    open_date: Optional[date] = None


@dataclass(frozen=True)
class CycleWindow:
    """Date range of one billing cycle (end inclusive)"""

    kind: str
    start: date
    end: date
    due_date: Optional[date] = None


@dataclass
class SpendSummary:
    """Spend totals for a single cycle window"""

    total_spend_cents: int
    transaction_count: int


@dataclass
class Reconciliation:
    """Remaining amount owed on the last statement after later payments"""

    original_balance_cents: int
    total_payments_cents: int
    remaining_balance_cents: int

    @property
    def fully_paid(self) -> bool:
        return self.remaining_balance_cents == 0


@dataclass
class OpenDateCorrection:
    """Replacement open date and the heuristic that produced it"""

    corrected_date: date
    method: str
    reported_date: Optional[date] = None


@dataclass
class BillingCycleDraft:
    """Computed billing cycle ready to be persisted"""

    kind: str
    start_date: date
    end_date: date
    due_date: Optional[date]
    statement_balance_cents: Optional[int]
    minimum_payment_cents: Optional[int]
    total_spend_cents: int
    transaction_count: int
    remaining_balance_cents: Optional[int] = None
    payment_status: Optional[str] = None
