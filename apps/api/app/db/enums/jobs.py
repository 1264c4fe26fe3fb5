"""Job-related enums."""

from enum import Enum


class ServiceType(str, Enum):
    """Cleaning service categories."""

    REGULAR = "regular"
    DEEP_CLEAN = "deep_clean"
    MOVE_IN = "move_in"
    MOVE_OUT = "move_out"
    POST_EVENT = "post_event"
    OTHER = "other"


class JobStatus(str, Enum):
    """Status of a scheduled cleaning job."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
