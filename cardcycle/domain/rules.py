"""Named constants and policies for billing cycle derivation"""

from dataclasses import dataclass
from typing import Tuple

# Substrings that mark a bank-initiated payment/credit against the card
DEFAULT_PAYMENT_KEYWORDS: Tuple[str, ...] = (
    "pymt",
    "payment",
    "autopay",
    "online payment",
    "mobile payment",
    "phone payment",
    "bank payment",
    "ach payment",
    "electronic payment",
    "web payment",
)

# Open-date trim policies
TRIM_CLAMP_TO_OPEN_DATE = "clamp_to_open_date"  # oldest window starts on the open date
TRIM_DROP_PARTIAL = "drop_partial"  # windows starting before the open date are dropped
TRIM_KEEP_PARTIAL = "keep_partial"  # straddling windows kept whole

TRIM_POLICIES = (TRIM_CLAMP_TO_OPEN_DATE, TRIM_DROP_PARTIAL, TRIM_KEEP_PARTIAL)

# Fallback window policies (no usable statement date)
FALLBACK_CALENDAR_MONTH = "calendar_month"
FALLBACK_TRAILING_CYCLE = "trailing_cycle"


@dataclass(frozen=True)
class CycleRules:
    """
    Tunable thresholds for every heuristic in the cycle pipeline.

    Defaults reproduce production behaviour; tests construct their own
    instances to exercise boundaries.
    """

    default_cycle_length_days: int = 30
    grace_30_day_range: Tuple[int, int] = (20, 25)
    grace_31_day_range: Tuple[int, int] = (26, 32)
    history_months: int = 12
    open_date_threshold_days: int = 90
    open_date_buffer_days: int = 7
    open_date_statement_fallback_months: int = 6
    open_date_default_fallback_months: int = 12
    historical_due_offset_days: int = 21
    fallback_due_offset_days: int = 25
    estimated_minimum_payment_floor_cents: int = 2500  # $25
    estimated_minimum_payment_rate: float = 0.02
    min_expected_history_cycles: int = 3
    payment_keywords: Tuple[str, ...] = DEFAULT_PAYMENT_KEYWORDS
    open_date_trim: str = TRIM_CLAMP_TO_OPEN_DATE
    fallback_window: str = FALLBACK_CALENDAR_MONTH

    def __post_init__(self) -> None:
        if self.open_date_trim not in TRIM_POLICIES:
            raise ValueError(f"Unknown open_date_trim policy: {self.open_date_trim}")
        if self.fallback_window not in (FALLBACK_CALENDAR_MONTH, FALLBACK_TRAILING_CYCLE):
            raise ValueError(f"Unknown fallback_window policy: {self.fallback_window}")
        if self.default_cycle_length_days <= 0:
            raise ValueError("default_cycle_length_days must be positive")


DEFAULT_RULES = CycleRules()
