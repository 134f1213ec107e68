"""Payment detection based on transaction descriptions"""

from typing import Optional

from cardcycle.domain.rules import CycleRules, DEFAULT_RULES


def is_payment(description: Optional[str], rules: CycleRules = DEFAULT_RULES) -> bool:
    """
    Decide whether a transaction is a payment/credit against the card.

    Plain substring match on the lower-cased description. Merchants whose
    names contain a keyword are reported as payments too.
    """
    if not description:
        return False
    text = description.lower()
    return any(keyword in text for keyword in rules.payment_keywords)
