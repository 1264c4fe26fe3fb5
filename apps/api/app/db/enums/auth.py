"""Auth-related enums."""

from enum import Enum


class Role(str, Enum):
    """
    Roles within an organisation.

    - ADMIN: Business owner (org settings, VAT, team)
    - TEAM_MEMBER: Day-to-day staff (clients, quotes, jobs)
    """

    ADMIN = "admin"
    TEAM_MEMBER = "team_member"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_
