"""Quotes router - staff endpoints for the quote lifecycle."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_current_session, get_db, require_csrf_header
from app.core.rate_limit import limiter
from app.core.structured_logging import build_log_context
from app.db.enums import QuoteDecision, QuoteStatus
from app.db.models import Quote
from app.schemas.auth import UserSession
from app.schemas.quote import (
    LineItemsWrite,
    QuoteListItem,
    QuoteListResponse,
    QuoteRead,
    QuoteSendResponse,
    QuoteStatusUpdate,
    QuoteWrite,
)
from app.services import quote_email_service, quote_pdf_service, quote_service
from app.services.quote_service import (
    QuoteNotFoundError,
    QuoteStateError,
    QuoteValidationError,
)
from app.utils.pagination import PaginationParams, get_pagination

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quotes", tags=["Quotes"])


def _read(quote: Quote) -> QuoteRead:
    return QuoteRead.model_validate(quote)


@router.get("", response_model=QuoteListResponse)
def list_quotes(
    status: QuoteStatus | None = Query(None),
    client_id: UUID | None = Query(None),
    pagination: PaginationParams = Depends(get_pagination),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """List quotes for the caller's organization."""
    quotes, total = quote_service.list_quotes(
        db, session.org_id, pagination, status=status, client_id=client_id
    )
    return QuoteListResponse(
        items=[QuoteListItem.model_validate(q) for q in quotes],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=pagination.page_count(total),
    )


@router.post(
    "",
    response_model=QuoteRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_quote(
    data: QuoteWrite,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Create a draft quote (fixed or itemised)."""
    try:
        quote = quote_service.create_quote(db, session.org_id, session.user_id, data)
        db.commit()
    except QuoteValidationError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    except IntegrityError:
        db.rollback()
        logger.exception("Quote insert conflict", extra=build_log_context(org_id=session.org_id))
        raise HTTPException(status_code=409, detail="Failed to create quote. Please try again.")
    db.refresh(quote)
    return _read(quote)


@router.get("/{quote_id}", response_model=QuoteRead)
def get_quote(
    quote_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Get quote detail with line items."""
    quote = quote_service.get_quote(db, session.org_id, quote_id)
    if not quote:
        raise HTTPException(status_code=404, detail="Quote not found")
    return _read(quote)


@router.put(
    "/{quote_id}",
    response_model=QuoteRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_quote(
    quote_id: UUID,
    data: QuoteWrite,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Full edit. The quote returns to draft."""
    try:
        quote = quote_service.update_quote(db, session.org_id, quote_id, data)
        db.commit()
    except QuoteNotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Quote not found")
    except QuoteValidationError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    except QuoteStateError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(e))
    db.refresh(quote)
    return _read(quote)


@router.put(
    "/{quote_id}/line-items",
    response_model=QuoteRead,
    dependencies=[Depends(require_csrf_header)],
)
def save_line_items(
    quote_id: UUID,
    data: LineItemsWrite,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Replace an itemised draft's line items."""
    try:
        quote = quote_service.save_line_items(db, session.org_id, quote_id, data.items)
        db.commit()
    except QuoteNotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Quote not found")
    except QuoteValidationError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    except QuoteStateError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(e))
    db.refresh(quote)
    return _read(quote)


@router.post(
    "/{quote_id}/send",
    response_model=QuoteSendResponse,
    dependencies=[Depends(require_csrf_header)],
)
async def send_quote(
    quote_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    Send a draft quote to the client.

    The status change is committed first; the email is dispatched after,
    and its outcome is reported but can never undo the send.
    """
    try:
        quote = quote_service.send_quote(db, session.org_id, session.user_id, quote_id)
        db.commit()
    except QuoteNotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Quote not found")
    except QuoteStateError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(e))

    db.refresh(quote)
    result = await quote_email_service.dispatch_quote_email(quote)
    return QuoteSendResponse(
        quote=_read(quote),
        email_sent=result.sent,
        email_skipped=result.skipped,
        email_error=result.error,
    )


@router.post(
    "/{quote_id}/status",
    response_model=QuoteRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_quote_status(
    quote_id: UUID,
    data: QuoteStatusUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Staff marks a sent/viewed quote accepted, declined or expired."""
    try:
        if data.status == "expired":
            quote = quote_service.expire_quote(db, session.org_id, session.user_id, quote_id)
        else:
            quote = quote_service.set_quote_response(
                db, session.org_id, session.user_id, quote_id, QuoteDecision(data.status)
            )
        db.commit()
    except QuoteNotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Quote not found")
    except QuoteStateError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(e))
    db.refresh(quote)
    return _read(quote)


@router.delete(
    "/{quote_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_quote(
    quote_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Delete a draft quote."""
    try:
        quote_service.delete_quote(db, session.org_id, quote_id)
        db.commit()
    except QuoteNotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="Quote not found")
    except QuoteStateError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(e))
    return Response(status_code=204)


@router.get("/{quote_id}/pdf", response_class=Response)
@limiter.limit(settings.RATE_LIMIT_PDF)
def download_quote_pdf(
    request: Request,
    quote_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
) -> Response:
    """Download the quote as a PDF."""
    quote = quote_service.get_quote(db, session.org_id, quote_id)
    if not quote:
        raise HTTPException(status_code=404, detail="Quote not found")

    pdf_bytes = quote_pdf_service.render_quote_pdf(quote_pdf_service.build_quote_pdf_data(quote))
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{quote.quote_number}.pdf"'},
    )
