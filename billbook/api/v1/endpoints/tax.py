"""API endpoint for GST classification."""
from fastapi import APIRouter

from billbook.api.deps import DB
from billbook.schemas.billing import TaxClassifyRequest, TaxClassificationResponse, TaxBreakdownSchema
from billbook.services.tax_service import TaxService

router = APIRouter()


@router.post("/classify", response_model=TaxClassificationResponse)
async def classify_tax(request: TaxClassifyRequest, db: DB):
    """Determine CGST+SGST, IGST or zero-rated export for a client location."""
    classification = await TaxService(db).classify_client(request.client_state_code, request.client_country)
    return TaxClassificationResponse(
        tax_type=classification.regime.value,
        gst_rate=classification.gst_rate,
        breakdown=TaxBreakdownSchema(**classification.breakdown.as_dict()),
        warning=classification.warning,
    )
