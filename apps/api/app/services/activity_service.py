"""Activity logging service - client timeline entries for quote events."""

from uuid import UUID

from sqlalchemy.orm import Session

from app.db.enums import ActivityType
from app.db.models import Activity, Quote


def log_activity(
    db: Session,
    organization_id: UUID,
    client_id: UUID,
    activity_type: ActivityType,
    title: str,
    actor_user_id: UUID | None = None,
    quote_id: UUID | None = None,
    job_id: UUID | None = None,
    details: dict | None = None,
) -> Activity:
    """
    Log a client activity.

    Args:
        db: Database session
        organization_id: Organization context
        client_id: The client this activity is for
        activity_type: Type of activity (from ActivityType enum)
        title: Short human-readable summary
        actor_user_id: User who performed the action (None for the client/system)
        quote_id: Related quote, if any
        job_id: Related job, if any
        details: Type-specific details as JSON

    Returns:
        The created activity entry
    """
    activity = Activity(
        organization_id=organization_id,
        client_id=client_id,
        activity_type=activity_type.value,
        title=title,
        created_by_user_id=actor_user_id,
        quote_id=quote_id,
        job_id=job_id,
        details=details,
    )
    db.add(activity)
    db.flush()  # Don't commit - let caller control transaction
    return activity


def log_quote_sent(db: Session, quote: Quote, actor_user_id: UUID | None) -> Activity:
    """Log a quote being sent to the client."""
    return log_activity(
        db=db,
        organization_id=quote.organization_id,
        client_id=quote.client_id,
        activity_type=ActivityType.QUOTE_SENT,
        title=f"Quote {quote.quote_number} sent",
        actor_user_id=actor_user_id,
        quote_id=quote.id,
        details={"total": str(quote.total)},
    )


def log_quote_viewed(db: Session, quote: Quote) -> Activity:
    """Log the client opening the public quote link."""
    return log_activity(
        db=db,
        organization_id=quote.organization_id,
        client_id=quote.client_id,
        activity_type=ActivityType.QUOTE_VIEWED,
        title=f"Quote {quote.quote_number} viewed",
        quote_id=quote.id,
    )


def log_quote_response(
    db: Session,
    quote: Quote,
    accepted: bool,
    actor_user_id: UUID | None = None,
    via_public_link: bool = False,
) -> Activity:
    """Log an accept/decline, from staff or from the public link."""
    verb = "accepted" if accepted else "declined"
    return log_activity(
        db=db,
        organization_id=quote.organization_id,
        client_id=quote.client_id,
        activity_type=ActivityType.QUOTE_ACCEPTED if accepted else ActivityType.QUOTE_DECLINED,
        title=f"Quote {quote.quote_number} {verb}",
        actor_user_id=actor_user_id,
        quote_id=quote.id,
        job_id=quote.job_id,
        details={"via_public_link": via_public_link},
    )


def log_quote_expired(db: Session, quote: Quote, actor_user_id: UUID | None = None) -> Activity:
    """Log a quote expiring (staff action or scheduled sweep)."""
    return log_activity(
        db=db,
        organization_id=quote.organization_id,
        client_id=quote.client_id,
        activity_type=ActivityType.QUOTE_EXPIRED,
        title=f"Quote {quote.quote_number} expired",
        actor_user_id=actor_user_id,
        quote_id=quote.id,
    )
