"""API endpoints for invoices and their payments."""
from typing import Optional
from uuid import UUID
from datetime import date

from fastapi import APIRouter, status, Query

from billbook.api.deps import DB
from billbook.schemas.billing import (
    InvoiceCreate, InvoiceUpdate, InvoiceResponse, InvoiceListResponse,
    StatusUpdate, NumberPreviewResponse,
    PaymentCreate, PaymentResponse, PaymentRecordResponse, PaymentListResponse,
)
from billbook.services.invoice_service import InvoiceService
from billbook.services.payment_service import PaymentService, total_received

router = APIRouter()


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice(invoice_in: InvoiceCreate, db: DB):
    """Create an invoice with an auto-generated or manual number."""
    invoice = await InvoiceService(db).create_invoice(invoice_in)
    return InvoiceResponse.model_validate(invoice)


@router.get("", response_model=InvoiceListResponse)
async def list_invoices(
    db: DB,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    status: Optional[str] = None,
    client_id: Optional[UUID] = None,
):
    """List invoices, newest first."""
    items, total = await InvoiceService(db).list_documents(skip, limit, status, client_id)
    return InvoiceListResponse(
        items=[InvoiceResponse.model_validate(i) for i in items],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/next-number", response_model=NumberPreviewResponse)
async def preview_invoice_number(
    db: DB,
    issue_date: Optional[date] = None,
    client_country: Optional[str] = None,
):
    """Preview the next auto-generated invoice number without using it."""
    preview = await InvoiceService(db).preview_next_number(issue_date, client_country)
    return NumberPreviewResponse(**preview.__dict__)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(invoice_id: UUID, db: DB):
    invoice = await InvoiceService(db).get(invoice_id)
    return InvoiceResponse.model_validate(invoice)


@router.put("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(invoice_id: UUID, invoice_in: InvoiceUpdate, db: DB):
    """Update an invoice. The invoice number cannot be changed."""
    invoice = await InvoiceService(db).update_invoice(invoice_id, invoice_in)
    return InvoiceResponse.model_validate(invoice)


@router.patch("/{invoice_id}/status", response_model=InvoiceResponse)
async def update_invoice_status(invoice_id: UUID, status_in: StatusUpdate, db: DB):
    """Set DRAFT, SENT or OVERDUE. PARTIAL and PAID follow payments."""
    invoice = await InvoiceService(db).set_status(invoice_id, status_in.status)
    return InvoiceResponse.model_validate(invoice)


# ==================== Payments ====================

@router.post("/{invoice_id}/payments", response_model=PaymentRecordResponse, status_code=status.HTTP_201_CREATED)
async def record_payment(invoice_id: UUID, payment_in: PaymentCreate, db: DB):
    """Record a payment and return the invoice's reconciled status."""
    record = await PaymentService(db).record_payment(invoice_id, payment_in)
    return PaymentRecordResponse(
        payment=PaymentResponse.model_validate(record.payment),
        invoice_status=record.invoice_status,
        total_paid=record.total_paid,
        balance_due=record.balance_due,
    )


@router.get("/{invoice_id}/payments", response_model=PaymentListResponse)
async def list_payments(invoice_id: UUID, db: DB):
    """Payments for an invoice, oldest first."""
    invoice = await InvoiceService(db).get(invoice_id)
    service = PaymentService(db)
    payments = await service.get_payments(invoice.id)
    total_paid = total_received(payments)
    return PaymentListResponse(
        items=[PaymentResponse.model_validate(p) for p in payments],
        total_paid=total_paid,
        balance_due=PaymentService.balance_due(invoice.grand_total, total_paid),
    )
