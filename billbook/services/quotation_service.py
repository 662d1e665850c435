"""Quotation Service.

Quotations keep one running sequence that never resets by default
(Q/IN2425/001, Q/IN2526/002 ...); the {FY} token still reflects the
issue date. Set QUOTATION_SEQUENCE_SCOPE=FISCAL_YEAR to restart yearly.
"""
import logging
import uuid

from billbook.models.billing import Quotation, QuotationStatus
from billbook.models.document_sequence import DocumentSeries
from billbook.schemas.billing import QuotationCreate, QuotationUpdate
from billbook.services.document_service import DocumentService, NumberingPolicy


logger = logging.getLogger(__name__)


class QuotationService(DocumentService):
    """Service for quotation creation, updates, status changes and deletion."""

    model = Quotation
    series = DocumentSeries.QUOTATION
    number_field = "quotation_number"
    status_enum = QuotationStatus
    settable_statuses = frozenset(s.value for s in QuotationStatus)
    scope_setting = "QUOTATION_SEQUENCE_SCOPE"
    format_field = "quotation_format"

    async def create_quotation(self, quotation_in: QuotationCreate, numbering: NumberingPolicy = None) -> Quotation:
        return await self.create(quotation_in, numbering)

    async def update_quotation(self, quotation_id: uuid.UUID, quotation_in: QuotationUpdate) -> Quotation:
        return await self.update(quotation_id, quotation_in)

    async def delete_quotation(self, quotation_id: uuid.UUID) -> None:
        """Delete a quotation. Its number is not reissued."""
        quotation = await self._get_for_update(quotation_id)
        number = quotation.quotation_number
        await self.db.delete(quotation)
        await self.db.flush()
        logger.info(f"Deleted quotation {number}")
