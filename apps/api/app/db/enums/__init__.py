"""Enum definitions for application constants."""

from app.db.enums.activities import ActivityType
from app.db.enums.auth import Role
from app.db.enums.clients import ClientStatus
from app.db.enums.defaults import (
    DEFAULT_CLIENT_STATUS,
    DEFAULT_JOB_STATUS,
    DEFAULT_PRICING_TYPE,
    DEFAULT_QUOTE_STATUS,
    DEFAULT_SERVICE_TYPE,
)
from app.db.enums.jobs import JobStatus, ServiceType
from app.db.enums.permissions import ROLES_CAN_MANAGE_SETTINGS
from app.db.enums.quotes import PricingType, QuoteDecision, QuoteEvent, QuoteStatus

__all__ = [
    "ActivityType",
    "ClientStatus",
    "DEFAULT_CLIENT_STATUS",
    "DEFAULT_JOB_STATUS",
    "DEFAULT_PRICING_TYPE",
    "DEFAULT_QUOTE_STATUS",
    "DEFAULT_SERVICE_TYPE",
    "JobStatus",
    "PricingType",
    "QuoteDecision",
    "QuoteEvent",
    "QuoteStatus",
    "ROLES_CAN_MANAGE_SETTINGS",
    "Role",
    "ServiceType",
]
