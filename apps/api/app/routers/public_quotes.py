"""Public quote endpoints (no auth).

The accept token in the path is the only credential. Unknown tokens get
the same generic 404 whatever the reason.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_db
from app.core.rate_limit import limiter, quote_token_key
from app.core.structured_logging import build_log_context
from app.db.models import Quote
from app.schemas.quote import (
    LineItemRead,
    PublicLetterhead,
    PublicQuoteRead,
    PublicRespondResponse,
    QuoteRespond,
)
from app.services import quote_service
from app.services.quote_service import QuoteNotFoundError, QuoteStateError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/q", tags=["Public Quotes"])


def _property_address(quote: Quote) -> str | None:
    prop = quote.service_property
    if not prop:
        return None
    return ", ".join(p for p in (prop.address_line1, prop.town, prop.postcode) if p)


def _public_view(quote: Quote) -> PublicQuoteRead:
    org = quote.organization
    return PublicQuoteRead(
        quote_number=quote.quote_number,
        title=quote.title,
        status=quote.status,
        response_state=quote_service.public_response_state(quote),
        pricing_type=quote.pricing_type,
        subtotal=quote.subtotal,
        tax_rate=quote.tax_rate,
        tax_amount=quote.tax_amount,
        total=quote.total,
        vat_registered=quote.tax_rate > 0,
        notes=quote.notes,
        valid_until=quote.valid_until,
        responded_at=quote.responded_at,
        client_name=quote.client.full_name,
        property_address=_property_address(quote),
        organization=PublicLetterhead(
            name=org.name,
            email=org.email,
            phone=org.phone,
            address=org.letterhead_address,
        ),
        core_items=[LineItemRead.model_validate(i) for i in quote.core_items],
        addon_items=[LineItemRead.model_validate(i) for i in quote.addon_items],
    )


@router.get("/{token}", response_model=PublicQuoteRead)
def view_quote(token: str, db: Session = Depends(get_db)):
    """
    Client-facing quote view.

    The first view of a sent quote marks it viewed. That side effect is
    best-effort: if it fails the quote is still shown.
    """
    quote = quote_service.get_quote_by_token(db, token)
    if not quote:
        raise HTTPException(status_code=404, detail="Quote not found.")

    try:
        if quote_service.mark_quote_viewed(db, quote):
            db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(
            "Failed to mark quote viewed",
            extra=build_log_context(org_id=quote.organization_id, quote_id=quote.id),
        )
        quote = quote_service.get_quote_by_token(db, token)
        if not quote:
            raise HTTPException(status_code=404, detail="Quote not found.")

    return _public_view(quote)


@router.post("/{token}/respond", response_model=PublicRespondResponse)
@limiter.limit(settings.RATE_LIMIT_QUOTE_RESPONSE, key_func=quote_token_key)
def respond_to_quote(
    request: Request,
    token: str,
    data: QuoteRespond,
    db: Session = Depends(get_db),
):
    """Client accepts or declines. Only sent/viewed quotes accept a response."""
    try:
        quote = quote_service.respond_to_quote(db, token, data.decision)
        db.commit()
    except QuoteNotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Quote not found.")
    except QuoteStateError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(e))
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to record quote response")
        raise HTTPException(
            status_code=500, detail="Failed to record your response. Please try again."
        )

    db.refresh(quote)
    return PublicRespondResponse(status=quote.status, responded_at=quote.responded_at)
