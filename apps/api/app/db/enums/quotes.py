"""Quote-related enums."""

from enum import Enum


class QuoteStatus(str, Enum):
    """
    Quote lifecycle status.

    draft -> sent -> viewed -> accepted | declined, with sent/viewed quotes
    expiring once their validity date passes.
    """

    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


class QuoteEvent(str, Enum):
    """Events that move a quote between statuses."""

    EDIT = "edit"
    SEND = "send"
    VIEW = "view"
    ACCEPT = "accept"
    DECLINE = "decline"
    EXPIRE = "expire"


class PricingType(str, Enum):
    """How a quote is priced."""

    FIXED = "fixed"  # Single VAT-inclusive price
    ITEMISED = "itemised"  # Line items, VAT added on top


class QuoteDecision(str, Enum):
    """A client's (or staff member's) answer to a quote."""

    ACCEPTED = "accepted"
    DECLINED = "declined"
