"""Centralized defaults for enums."""

from app.db.enums.clients import ClientStatus
from app.db.enums.jobs import JobStatus, ServiceType
from app.db.enums.quotes import PricingType, QuoteStatus


DEFAULT_QUOTE_STATUS: QuoteStatus = QuoteStatus.DRAFT
DEFAULT_PRICING_TYPE: PricingType = PricingType.FIXED
DEFAULT_CLIENT_STATUS: ClientStatus = ClientStatus.ACTIVE
DEFAULT_JOB_STATUS: JobStatus = JobStatus.SCHEDULED
DEFAULT_SERVICE_TYPE: ServiceType = ServiceType.OTHER
