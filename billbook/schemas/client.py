"""Pydantic schemas for clients."""
from datetime import datetime
from typing import Annotated, Optional, List
from uuid import UUID

from pydantic import AfterValidator, BaseModel, Field

from billbook.schemas.base import BaseResponseSchema, BaseCreateSchema
from billbook.models.client import GST_STATE_CODES


def check_state_code(v: Optional[int]) -> Optional[int]:
    """Accept only GST state codes (99 for clients outside India)."""
    if v is not None and v not in GST_STATE_CODES:
        raise ValueError(f"Unknown GST state code {v}")
    return v


GSTStateCode = Annotated[Optional[int], AfterValidator(check_state_code)]


class ClientCreate(BaseCreateSchema):
    """Schema for creating a client."""
    company_name: str = Field(..., min_length=1, max_length=200)
    tax_id: Optional[str] = Field(None, max_length=20, description="GSTIN or foreign tax ID")
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    state_code: GSTStateCode = Field(None, description="GST state code, 99 for international clients")
    country: str = Field("India", min_length=1, max_length=100)


class ClientResponse(BaseResponseSchema):
    id: UUID
    company_name: str
    tax_id: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    state_code: Optional[int] = None
    state_name: Optional[str] = None
    country: str
    created_at: datetime


class ClientListResponse(BaseModel):
    items: List[ClientResponse]
    total: int
    skip: int
    limit: int
