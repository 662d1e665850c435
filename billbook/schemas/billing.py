"""Pydantic schemas for invoices, quotations, payments and tax classification."""
from datetime import datetime, date
from typing import Optional, List, Literal, Union, Any, Dict, Annotated
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from billbook.config import settings
from billbook.schemas.base import BaseResponseSchema, BaseCreateSchema, BaseUpdateSchema
from billbook.schemas.client import GSTStateCode
from billbook.models.billing import InvoiceStatus, QuotationStatus, PaymentMode


# ==================== Numbering ====================

class AutoNumbering(BaseModel):
    """Generate the next number from the document's sequence."""
    mode: Literal["AUTO"] = "AUTO"


class ManualNumbering(BaseModel):
    """Use a caller-supplied number. Must not already exist."""
    mode: Literal["MANUAL"]
    number: str = Field(..., min_length=1, max_length=50)


NumberingIn = Annotated[Union[AutoNumbering, ManualNumbering], Field(discriminator="mode")]


# ==================== Document Schemas ====================

class DocumentBase(BaseCreateSchema):
    """Fields shared by invoice and quotation input."""
    client_id: UUID
    issue_date: date
    line_items: List[Dict[str, Any]] = Field(default_factory=list)
    subtotal: Decimal = Field(..., ge=0)
    grand_total: Optional[Decimal] = Field(
        None, ge=0, description="Defaults to subtotal plus computed GST"
    )
    currency: str = Field(default_factory=lambda: settings.DEFAULT_CURRENCY, min_length=3, max_length=3)
    bank_account_ref: Optional[str] = Field(None, max_length=100)
    remarks: Optional[str] = None
    numbering: NumberingIn = Field(default_factory=AutoNumbering)


class InvoiceCreate(DocumentBase):
    """Schema for creating an invoice."""
    due_date: Optional[date] = None


class QuotationCreate(DocumentBase):
    """Schema for creating a quotation."""
    expiry_date: Optional[date] = None
    contract_terms: Optional[str] = None
    services_offered: Optional[str] = None


class DocumentUpdate(BaseUpdateSchema):
    """Editable fields. Numbers and the manual-entry flag are not editable."""
    client_id: Optional[UUID] = None
    issue_date: Optional[date] = None
    line_items: Optional[List[Dict[str, Any]]] = None
    subtotal: Optional[Decimal] = Field(None, ge=0)
    grand_total: Optional[Decimal] = Field(None, ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    bank_account_ref: Optional[str] = Field(None, max_length=100)
    remarks: Optional[str] = None


class InvoiceUpdate(DocumentUpdate):
    due_date: Optional[date] = None


class QuotationUpdate(DocumentUpdate):
    expiry_date: Optional[date] = None
    contract_terms: Optional[str] = None
    services_offered: Optional[str] = None


class StatusUpdate(BaseModel):
    """Caller-driven status change."""
    status: str = Field(..., min_length=1, max_length=20)


class DocumentResponseBase(BaseResponseSchema):
    id: UUID
    is_manual_entry: bool
    client_id: UUID
    issue_date: date
    line_items: Optional[List[Dict[str, Any]]] = None
    tax_type: str
    gst_rate: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    igst_amount: Decimal
    total_tax: Decimal
    subtotal: Decimal
    grand_total: Decimal
    currency: str
    bank_account_ref: Optional[str] = None
    remarks: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class InvoiceResponse(DocumentResponseBase):
    """Response schema for Invoice."""
    invoice_number: str
    status: InvoiceStatus
    due_date: Optional[date] = None


class QuotationResponse(DocumentResponseBase):
    """Response schema for Quotation."""
    quotation_number: str
    status: QuotationStatus
    expiry_date: Optional[date] = None
    contract_terms: Optional[str] = None
    services_offered: Optional[str] = None


class InvoiceListResponse(BaseModel):
    items: List[InvoiceResponse]
    total: int
    skip: int
    limit: int


class QuotationListResponse(BaseModel):
    items: List[QuotationResponse]
    total: int
    skip: int
    limit: int


class NumberPreviewResponse(BaseModel):
    document_type: str
    scope_key: str
    next_sequence: int
    next_number: str


# ==================== Payment Schemas ====================

class PaymentCreate(BaseCreateSchema):
    """Schema for recording a payment."""
    amount_received: Decimal = Field(..., gt=0, decimal_places=2)
    payment_date: date
    payment_method: Optional[PaymentMode] = None
    reference_no: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=500)


class PaymentResponse(BaseResponseSchema):
    """Response schema for Payment."""
    id: UUID
    invoice_id: UUID
    amount_received: Decimal
    payment_date: date
    payment_method: Optional[str] = None
    reference_no: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


class PaymentRecordResponse(BaseModel):
    payment: PaymentResponse
    invoice_status: InvoiceStatus
    total_paid: Decimal
    balance_due: Decimal


class PaymentListResponse(BaseModel):
    items: List[PaymentResponse]
    total_paid: Decimal
    balance_due: Decimal


# ==================== Tax Schemas ====================

class TaxClassifyRequest(BaseModel):
    client_state_code: GSTStateCode = None
    client_country: Optional[str] = Field("India", max_length=100)


class TaxBreakdownSchema(BaseModel):
    cgst: Decimal
    sgst: Decimal
    igst: Decimal


class TaxClassificationResponse(BaseModel):
    tax_type: str
    gst_rate: Decimal
    breakdown: TaxBreakdownSchema
    warning: Optional[str] = None
