"""SQLAlchemy ORM models."""

from app.db.models.activities import Activity
from app.db.models.auth import Membership, Organization, User
from app.db.models.clients import Client, Property
from app.db.models.jobs import Job
from app.db.models.quotes import Quote, QuoteLineItem

__all__ = [
    "Activity",
    "Client",
    "Job",
    "Membership",
    "Organization",
    "Property",
    "Quote",
    "QuoteLineItem",
    "User",
]
