"""
Internal endpoints for scheduled/cron operations.

Protected by X-Internal-Secret header.
Call from an external scheduler (cron, GH Actions, ...).
"""

import hmac
import logging
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_db
from app.services import quote_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/internal/scheduled", tags=["internal"])


def verify_internal_secret(x_internal_secret: str = Header(...)) -> None:
    """Verify the internal secret header."""
    expected = settings.INTERNAL_SECRET
    if not expected:
        raise HTTPException(status_code=501, detail="INTERNAL_SECRET not configured")
    if not hmac.compare_digest(x_internal_secret, expected):
        raise HTTPException(status_code=403, detail="Invalid internal secret")


class QuoteExpiryRequest(BaseModel):
    # Defaults to today (UTC); overridable for backfills
    today: date | None = None


class QuoteExpiryResponse(BaseModel):
    as_of: date
    quotes_expired: int


@router.post(
    "/quote-expiry",
    response_model=QuoteExpiryResponse,
    dependencies=[Depends(verify_internal_secret)],
)
def expire_overdue_quotes(
    data: QuoteExpiryRequest | None = None,
    db: Session = Depends(get_db),
):
    """
    Daily sweep: expire sent/viewed quotes past their valid_until date.
    """
    as_of = (data.today if data and data.today else None) or datetime.now(timezone.utc).date()
    expired = quote_service.expire_overdue_quotes(db, as_of)
    db.commit()
    logger.info("Quote expiry sweep done", extra={"as_of": as_of.isoformat(), "expired": expired})
    return QuoteExpiryResponse(as_of=as_of, quotes_expired=expired)
