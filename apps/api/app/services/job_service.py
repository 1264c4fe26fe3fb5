"""Job service - cleaning jobs, including jobs created from accepted quotes."""

from uuid import UUID

from sqlalchemy.orm import Session

from app.db.enums import JobStatus, ServiceType
from app.db.models import Job, Quote


def create_job_from_quote(db: Session, quote: Quote, assigned_to_user_id: UUID | None) -> Job:
    """
    Create the job for an accepted quote and link it back.

    jobs.quote_id is unique, so a second insert for the same quote fails
    with IntegrityError on flush (caller's transaction rolls back).
    """
    job = Job(
        organization_id=quote.organization_id,
        client_id=quote.client_id,
        property_id=quote.property_id,
        quote_id=quote.id,
        assigned_to_user_id=assigned_to_user_id,
        service_type=ServiceType.OTHER.value,
        status=JobStatus.SCHEDULED.value,
        scheduled_date=None,
        price=quote.total,
        notes=f"From quote {quote.quote_number}: {quote.title}",
    )
    db.add(job)
    db.flush()
    quote.job_id = job.id
    db.flush()
    return job
