"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class AggregatorAPIError(DomainException):
    """Aggregator API returned an error or is unavailable"""

    pass


class CardNotFoundError(DomainException):
    """No card with the requested id exists"""

    pass


class InvalidCycleWindowError(DomainException):
    """Generated windows overlap, leave gaps, or run backwards"""

    pass


class PersistenceError(DomainException):
    """Storage failed while replacing a card's billing cycles"""

    pass


class CycleRegenerationInProgressError(DomainException):
    """Another regeneration holds the card lock; retry later"""

    pass
