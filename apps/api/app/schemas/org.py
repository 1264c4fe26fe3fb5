"""Organization-related Pydantic schemas."""

from decimal import Decimal

from pydantic import BaseModel, Field


class VatSettingsRead(BaseModel):
    """Response schema for an organisation's VAT settings."""

    vat_registered: bool
    vat_rate: Decimal
    vat_number: str | None

    model_config = {"from_attributes": True}


class VatSettingsUpdate(BaseModel):
    """Request schema for changing VAT settings."""

    vat_registered: bool
    vat_rate: Decimal | None = Field(default=None, ge=0, le=100)
    vat_number: str | None = Field(default=None, max_length=20)
