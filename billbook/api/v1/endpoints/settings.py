"""API endpoints for company profile, document formats and sequences."""
from fastapi import APIRouter, HTTPException

from billbook.api.deps import DB
from billbook.models.document_sequence import DocumentSeries
from billbook.schemas.settings import (
    CompanyProfileUpdate, CompanyProfileResponse,
    DocumentSettings, SequenceUpdate, SequenceResponse,
)
from billbook.services.invoice_service import InvoiceService
from billbook.services.quotation_service import QuotationService
from billbook.services.settings_service import SettingsService

router = APIRouter()


# ==================== Company Profile ====================

@router.get("/company", response_model=CompanyProfileResponse)
async def get_company_profile(db: DB):
    profile = await SettingsService(db).get_company_profile()
    if not profile:
        raise HTTPException(status_code=404, detail="Company profile not configured")
    return CompanyProfileResponse.model_validate(profile)


@router.put("/company", response_model=CompanyProfileResponse)
async def update_company_profile(profile_in: CompanyProfileUpdate, db: DB):
    profile = await SettingsService(db).upsert_company_profile(profile_in)
    return CompanyProfileResponse.model_validate(profile)


# ==================== Document Settings (Formats) ====================

@router.get("/documents", response_model=DocumentSettings)
async def get_document_settings(db: DB):
    return await SettingsService(db).get_document_settings()


@router.put("/documents", response_model=DocumentSettings)
async def update_document_settings(settings_in: DocumentSettings, db: DB):
    return await SettingsService(db).update_document_settings(settings_in)


# ==================== Sequence Management ====================

@router.put("/sequence", response_model=SequenceResponse)
async def update_sequence(sequence_in: SequenceUpdate, db: DB):
    """Set the number the next auto-generated invoice or quotation receives."""
    if sequence_in.type == DocumentSeries.INVOICE:
        service = InvoiceService(db)
    else:
        service = QuotationService(db)

    counter = await service.set_next_number(sequence_in.next_number, sequence_in.on_date)
    return SequenceResponse(
        type=sequence_in.type,
        scope_key=counter.scope_key,
        last_count=counter.last_count,
        next_number=counter.last_count + 1,
        message=f"{sequence_in.type.value} sequence updated for {counter.scope_key}",
    )
