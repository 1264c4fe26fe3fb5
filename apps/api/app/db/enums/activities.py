"""Activity timeline enums."""

from enum import Enum


class ActivityType(str, Enum):
    """Entries on a client's activity timeline."""

    NOTE = "note"
    CALL = "call"
    EMAIL = "email"
    QUOTE_SENT = "quote_sent"
    QUOTE_VIEWED = "quote_viewed"
    QUOTE_ACCEPTED = "quote_accepted"
    QUOTE_DECLINED = "quote_declined"
    QUOTE_EXPIRED = "quote_expired"
    JOB_SCHEDULED = "job_scheduled"
    JOB_COMPLETED = "job_completed"
    JOB_CANCELLED = "job_cancelled"
    OTHER = "other"
