"""Tests for the quote status state machine."""
import pytest

from app.db.enums import QuoteEvent, QuoteStatus
from app.services.quote_state import (
    InvalidQuoteTransition,
    QuoteStateError,
    allowed_sources,
    can_transition,
    transition,
)


S = QuoteStatus
E = QuoteEvent


@pytest.mark.parametrize(
    "current,event,expected",
    [
        (S.DRAFT, E.SEND, S.SENT),
        (S.SENT, E.VIEW, S.VIEWED),
        (S.SENT, E.ACCEPT, S.ACCEPTED),
        (S.VIEWED, E.ACCEPT, S.ACCEPTED),
        (S.SENT, E.DECLINE, S.DECLINED),
        (S.VIEWED, E.DECLINE, S.DECLINED),
        (S.SENT, E.EXPIRE, S.EXPIRED),
        (S.VIEWED, E.EXPIRE, S.EXPIRED),
        (S.DRAFT, E.EDIT, S.DRAFT),
        (S.SENT, E.EDIT, S.DRAFT),
        (S.DECLINED, E.EDIT, S.DRAFT),
        (S.EXPIRED, E.EDIT, S.DRAFT),
    ],
)
def test_allowed_transitions(current, event, expected):
    assert transition(current, event) == expected
    assert can_transition(current, event)


@pytest.mark.parametrize(
    "current,event",
    [
        (S.DRAFT, E.ACCEPT),
        (S.DRAFT, E.DECLINE),
        (S.DRAFT, E.VIEW),
        (S.DRAFT, E.EXPIRE),
        (S.SENT, E.SEND),
        (S.VIEWED, E.VIEW),
        (S.ACCEPTED, E.ACCEPT),
        (S.ACCEPTED, E.DECLINE),
        (S.ACCEPTED, E.EDIT),
        (S.DECLINED, E.ACCEPT),
        (S.EXPIRED, E.ACCEPT),
    ],
)
def test_rejected_transitions(current, event):
    assert not can_transition(current, event)
    with pytest.raises(InvalidQuoteTransition) as exc_info:
        transition(current, event)

    assert exc_info.value.current_status == current
    assert exc_info.value.event == event
    assert str(exc_info.value) == f"Cannot {event.value} a quote that is {current.value}."


def test_invalid_transition_is_a_state_error():
    with pytest.raises(QuoteStateError):
        transition(S.ACCEPTED, E.SEND)


def test_every_event_has_sources():
    for event in QuoteEvent:
        assert allowed_sources(event)


def test_responses_only_from_open_statuses():
    open_statuses = {S.SENT, S.VIEWED}
    assert allowed_sources(E.ACCEPT) == open_statuses
    assert allowed_sources(E.DECLINE) == open_statuses
    assert allowed_sources(E.EXPIRE) == open_statuses
