"""Credit limit inference and utilization"""

import math
from typing import Optional, Union

from cardcycle.domain.models import Card

Number = Union[int, float]


def _valid_limit(value: Optional[Number]) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value) and value > 0
    except TypeError:
        return False


def infer_limit(card: Card) -> Optional[int]:
    """
    Usable credit limit in cents, or None if it cannot be determined.

    A reported limit is accepted only when finite and positive. Otherwise it
    is inferred as |current balance| + available credit when both are known.
    """
    if _valid_limit(card.reported_limit_cents):
        return int(round(card.reported_limit_cents))

    if card.balance_current_cents is not None and card.available_credit_cents is not None:
        inferred = abs(card.balance_current_cents) + card.available_credit_cents
        return inferred if inferred > 0 else None

    return None


def effective_limit(card: Card) -> Optional[int]:
    """Manual limit set by the user wins over reported or inferred limits"""
    if _valid_limit(card.manual_limit_cents):
        return int(card.manual_limit_cents)
    return infer_limit(card)


def utilization(card: Card) -> Optional[float]:
    """Current balance as a percentage of the effective limit (None when no limit)"""
    limit = effective_limit(card)
    if limit is None or card.balance_current_cents is None:
        return None
    return round(abs(card.balance_current_cents) / limit * 100, 1)
