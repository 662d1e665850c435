"""API endpoints for quotations."""
from typing import Optional
from uuid import UUID
from datetime import date

from fastapi import APIRouter, status, Query

from billbook.api.deps import DB
from billbook.schemas.billing import (
    QuotationCreate, QuotationUpdate, QuotationResponse, QuotationListResponse,
    StatusUpdate, NumberPreviewResponse,
)
from billbook.services.quotation_service import QuotationService

router = APIRouter()


@router.post("", response_model=QuotationResponse, status_code=status.HTTP_201_CREATED)
async def create_quotation(quotation_in: QuotationCreate, db: DB):
    """Create a quotation with an auto-generated or manual number."""
    quotation = await QuotationService(db).create_quotation(quotation_in)
    return QuotationResponse.model_validate(quotation)


@router.get("", response_model=QuotationListResponse)
async def list_quotations(
    db: DB,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    status: Optional[str] = None,
    client_id: Optional[UUID] = None,
):
    items, total = await QuotationService(db).list_documents(skip, limit, status, client_id)
    return QuotationListResponse(
        items=[QuotationResponse.model_validate(q) for q in items],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/next-number", response_model=NumberPreviewResponse)
async def preview_quotation_number(
    db: DB,
    issue_date: Optional[date] = None,
    client_country: Optional[str] = None,
):
    preview = await QuotationService(db).preview_next_number(issue_date, client_country)
    return NumberPreviewResponse(**preview.__dict__)


@router.get("/{quotation_id}", response_model=QuotationResponse)
async def get_quotation(quotation_id: UUID, db: DB):
    quotation = await QuotationService(db).get(quotation_id)
    return QuotationResponse.model_validate(quotation)


@router.put("/{quotation_id}", response_model=QuotationResponse)
async def update_quotation(quotation_id: UUID, quotation_in: QuotationUpdate, db: DB):
    """Update a quotation. The quotation number cannot be changed."""
    quotation = await QuotationService(db).update_quotation(quotation_id, quotation_in)
    return QuotationResponse.model_validate(quotation)


@router.patch("/{quotation_id}/status", response_model=QuotationResponse)
async def update_quotation_status(quotation_id: UUID, status_in: StatusUpdate, db: DB):
    quotation = await QuotationService(db).set_status(quotation_id, status_in.status)
    return QuotationResponse.model_validate(quotation)


@router.delete("/{quotation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_quotation(quotation_id: UUID, db: DB):
    await QuotationService(db).delete_quotation(quotation_id)
