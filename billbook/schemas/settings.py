"""Pydantic schemas for company profile, document formats and sequence management."""
from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from billbook.schemas.base import BaseResponseSchema, BaseCreateSchema
from billbook.models.document_sequence import DocumentSeries
from billbook.services.document_number_formatter import has_sequence_placeholder


class CompanyProfileUpdate(BaseCreateSchema):
    company_name: str = Field(..., min_length=1, max_length=200)
    gstin: Optional[str] = Field(None, min_length=15, max_length=15)
    address: Optional[str] = Field(None, max_length=500)
    phone: Optional[str] = Field(None, max_length=20)
    home_state_code: int = Field(..., ge=1, le=97)
    home_country: str = Field("India", max_length=100)


class CompanyProfileResponse(BaseResponseSchema):
    id: UUID
    company_name: str
    gstin: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    home_state_code: Optional[int] = None
    home_country: str


class DocumentSettings(BaseCreateSchema):
    """Number formats and labels. See document_number_formatter for tokens."""
    invoice_format: str = Field(..., min_length=1, max_length=50)
    quotation_format: str = Field(..., min_length=1, max_length=50)
    invoice_label: str = Field("INVOICE", max_length=50)
    quotation_label: str = Field("QUOTATION", max_length=50)
    warnings: list[str] = Field(default_factory=list)

    @field_validator("invoice_format", "quotation_format")
    @classmethod
    def check_braces(cls, v: str) -> str:
        if v.count("{") != v.count("}"):
            raise ValueError(f"Unbalanced braces in format '{v}'")
        return v


class SequenceUpdate(BaseModel):
    """Set the number the next auto-generated document will receive."""
    type: DocumentSeries
    next_number: int = Field(..., ge=1)
    on_date: Optional[date] = Field(None, description="Date whose scope to update; defaults to today")


class SequenceResponse(BaseModel):
    type: DocumentSeries
    scope_key: str
    last_count: int
    next_number: int
    message: str


def format_warnings(settings_in: DocumentSettings) -> list[str]:
    """Formats without {SEQ} still work: the sequence is appended as -n."""
    warnings = []
    for name in ("invoice_format", "quotation_format"):
        if not has_sequence_placeholder(getattr(settings_in, name)):
            warnings.append(f"{name} has no {{SEQ}} placeholder; the sequence will be appended as -n")
    return warnings
