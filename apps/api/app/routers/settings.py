"""Settings endpoints for organization VAT configuration."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.deps import (
    get_current_session,
    get_db,
    require_csrf_header,
    require_roles,
)
from app.db.enums import ROLES_CAN_MANAGE_SETTINGS
from app.schemas.auth import UserSession
from app.schemas.org import VatSettingsRead, VatSettingsUpdate
from app.services import org_service

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/vat", response_model=VatSettingsRead)
def get_vat_settings(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Get the organisation's VAT settings."""
    org = org_service.get_org_by_id(db, session.org_id)
    if not org:
        raise HTTPException(status_code=404, detail="Organization not found")
    return VatSettingsRead.model_validate(org)


@router.patch(
    "/vat",
    response_model=VatSettingsRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_vat_settings(
    data: VatSettingsUpdate,
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE_SETTINGS)),
    db: Session = Depends(get_db),
):
    """
    Change VAT registration, rate or number.

    Only affects quotes written afterwards; existing quotes keep their
    snapshotted rate.
    """
    org = org_service.get_org_by_id(db, session.org_id)
    if not org:
        raise HTTPException(status_code=404, detail="Organization not found")

    try:
        org_service.update_vat_settings(
            db,
            org,
            vat_registered=data.vat_registered,
            vat_rate=data.vat_rate,
            vat_number=data.vat_number,
        )
        db.commit()
    except org_service.VatSettingsError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    db.refresh(org)
    return VatSettingsRead.model_validate(org)
