"""Invoice Service.

Invoices are numbered per financial year by default (INV/2425/001 ...)
and carry a payment-driven status.
"""
import logging
import uuid
from decimal import Decimal

from billbook.core.exceptions import ValidationError
from billbook.models.billing import Invoice, InvoiceStatus
from billbook.models.document_sequence import DocumentSeries
from billbook.schemas.billing import InvoiceCreate, InvoiceUpdate
from billbook.services.document_service import DocumentService, NumberingPolicy
from billbook.services.payment_service import PaymentService


logger = logging.getLogger(__name__)


class InvoiceService(DocumentService):
    """Service for invoice creation, updates and status changes."""

    model = Invoice
    series = DocumentSeries.INVOICE
    number_field = "invoice_number"
    status_enum = InvoiceStatus
    # PARTIAL and PAID come only from payment reconciliation
    settable_statuses = frozenset({
        InvoiceStatus.DRAFT.value,
        InvoiceStatus.SENT.value,
        InvoiceStatus.OVERDUE.value,
    })
    scope_setting = "INVOICE_SEQUENCE_SCOPE"
    format_field = "invoice_format"

    async def create_invoice(self, invoice_in: InvoiceCreate, numbering: NumberingPolicy = None) -> Invoice:
        return await self.create(invoice_in, numbering)

    async def update_invoice(self, invoice_id: uuid.UUID, invoice_in: InvoiceUpdate) -> Invoice:
        return await self.update(invoice_id, invoice_in)

    async def _after_update(self, document: Invoice, old_grand_total: Decimal) -> None:
        if document.grand_total != old_grand_total:
            new_status = await PaymentService(self.db).reconcile_invoice(document)
            logger.info(
                f"Invoice {document.invoice_number} total changed {old_grand_total} → "
                f"{document.grand_total}, status {new_status.value}"
            )

    async def _check_transition(self, document: Invoice, new: str) -> None:
        current = document.status
        if current == InvoiceStatus.PAID.value and new != current:
            raise ValidationError(
                f"Invoice is already PAID and cannot move to {new}",
                {"status": current},
            )
        if new in (InvoiceStatus.OVERDUE.value, current):
            return
        # With payments on record only OVERDUE may replace PARTIAL
        total_paid = await PaymentService(self.db).get_total_paid(document.id)
        if total_paid > 0:
            raise ValidationError(
                f"Invoice has payments of {total_paid} recorded and cannot move to {new}",
                {"status": current, "total_paid": str(total_paid)},
            )
