"""Quote status state machine.

All status changes go through :func:`transition`; persistence applies the
result with a compare-and-set on the allowed source statuses.
"""

from app.db.enums import QuoteEvent, QuoteStatus


class QuoteServiceError(Exception):
    """Base exception for quote service errors."""

    pass


class QuoteStateError(QuoteServiceError):
    """Quote is not in a status that allows the requested change."""

    def __init__(self, message: str, current_status: QuoteStatus | None = None):
        super().__init__(message)
        self.current_status = current_status


class InvalidQuoteTransition(QuoteStateError):
    """(status, event) pair is not in the transition table."""

    def __init__(self, current: QuoteStatus, event: QuoteEvent):
        super().__init__(
            f"Cannot {event.value} a quote that is {current.value}.",
            current_status=current,
        )
        self.event = event


OPEN_STATUSES = frozenset({QuoteStatus.SENT, QuoteStatus.VIEWED})

# event -> (allowed source statuses, target status)
TRANSITIONS: dict[QuoteEvent, tuple[frozenset[QuoteStatus], QuoteStatus]] = {
    # A quote that produced a job cannot be reopened
    QuoteEvent.EDIT: (
        frozenset(QuoteStatus) - {QuoteStatus.ACCEPTED},
        QuoteStatus.DRAFT,
    ),
    QuoteEvent.SEND: (frozenset({QuoteStatus.DRAFT}), QuoteStatus.SENT),
    QuoteEvent.VIEW: (frozenset({QuoteStatus.SENT}), QuoteStatus.VIEWED),
    QuoteEvent.ACCEPT: (OPEN_STATUSES, QuoteStatus.ACCEPTED),
    QuoteEvent.DECLINE: (OPEN_STATUSES, QuoteStatus.DECLINED),
    QuoteEvent.EXPIRE: (OPEN_STATUSES, QuoteStatus.EXPIRED),
}


def allowed_sources(event: QuoteEvent) -> frozenset[QuoteStatus]:
    return TRANSITIONS[event][0]


def can_transition(current: QuoteStatus, event: QuoteEvent) -> bool:
    return current in TRANSITIONS[event][0]


def transition(current: QuoteStatus, event: QuoteEvent) -> QuoteStatus:
    """Return the status after applying event, or raise InvalidQuoteTransition."""
    sources, target = TRANSITIONS[event]
    if current not in sources:
        raise InvalidQuoteTransition(current, event)
    return target
