"""Organization service - tenant lookup and VAT settings."""

import re
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.models import Organization

VAT_NUMBER_PATTERN = re.compile(r"^GB[0-9]{9}$")
MAX_VAT_RATE = Decimal("100")


class VatSettingsError(ValueError):
    """Invalid VAT settings input."""

    pass


def get_org_by_id(db: Session, org_id: UUID) -> Organization | None:
    """Get organization by ID."""
    return db.query(Organization).filter(Organization.id == org_id).first()


def normalize_vat_number(value: str | None) -> str | None:
    if value is None:
        return None
    compact = re.sub(r"\s", "", value).upper()
    return compact or None


def update_vat_settings(
    db: Session,
    org: Organization,
    vat_registered: bool,
    vat_rate: Decimal | None = None,
    vat_number: str | None = None,
) -> Organization:
    """
    Update an organisation's VAT registration.

    Turning VAT off restores the default rate and clears the number.
    Existing quotes keep the rate snapshotted when they were written.

    Raises:
        VatSettingsError: rate out of range or malformed GB VAT number
    """
    if not vat_registered:
        org.vat_registered = False
        org.vat_rate = settings.DEFAULT_VAT_RATE
        org.vat_number = None
        db.flush()
        return org

    rate = settings.DEFAULT_VAT_RATE if vat_rate is None else Decimal(vat_rate)
    if not rate.is_finite() or rate < 0 or rate > MAX_VAT_RATE:
        raise VatSettingsError("VAT rate must be between 0 and 100.")

    number = normalize_vat_number(vat_number)
    if number and not VAT_NUMBER_PATTERN.match(number):
        raise VatSettingsError("VAT number should be in the format GB123456789.")

    org.vat_registered = True
    org.vat_rate = rate
    org.vat_number = number
    db.flush()
    return org
