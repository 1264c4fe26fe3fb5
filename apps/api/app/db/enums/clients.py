"""Client-related enums."""

from enum import Enum


class ClientStatus(str, Enum):
    """Client account status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    LEAD = "lead"
