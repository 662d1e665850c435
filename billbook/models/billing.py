"""Billing models: invoices, quotations and payments.

Supports:
- Tax invoices with GST breakdown (CGST+SGST / IGST / zero-rated export)
- Quotations sharing the invoice numbering and tax rules
- Append-only payments against invoices
"""
import uuid
from datetime import datetime, date, timezone
from enum import Enum
from typing import TYPE_CHECKING, Optional, List
from decimal import Decimal

from sqlalchemy import String, Boolean, DateTime, ForeignKey, Text, Numeric, Date
from sqlalchemy import Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from billbook.database import Base
from billbook.db_types import UUIDType, JSONType

if TYPE_CHECKING:
    from billbook.models.client import Client


class InvoiceStatus(str, Enum):
    """Invoice status enumeration."""
    DRAFT = "DRAFT"
    SENT = "SENT"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


class QuotationStatus(str, Enum):
    """Quotation status enumeration."""
    DRAFT = "DRAFT"
    SENT = "SENT"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


class PaymentMode(str, Enum):
    """Payment mode enumeration."""
    CASH = "CASH"
    CHEQUE = "CHEQUE"
    RTGS = "RTGS"
    NEFT = "NEFT"
    IMPS = "IMPS"
    UPI = "UPI"
    CARD = "CARD"
    WIRE = "WIRE"           # International transfer
    OTHER = "OTHER"


class DocumentMixin:
    """Columns shared by invoices and quotations."""

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    is_manual_entry: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="True when the number was typed in rather than generated"
    )

    client_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("clients.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    issue_date: Mapped[date] = mapped_column(Date, nullable=False)

    line_items: Mapped[Optional[list]] = mapped_column(JSONType, nullable=True)

    # Tax
    tax_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="IGST",
        comment="CGST_SGST, IGST, NONE"
    )
    gst_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("0"))
    cgst_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"))
    sgst_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"))
    igst_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"))
    total_tax: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"))

    # Totals
    subtotal: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    grand_total: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    # Pass-through
    currency: Mapped[str] = mapped_column(String(3), default="INR")
    bank_account_ref: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )


class Invoice(DocumentMixin, Base):
    """
    Tax invoice.

    invoice_number and is_manual_entry are fixed at creation.
    PARTIAL and PAID are written only by payment reconciliation.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        Index("ix_invoices_issue_date", "issue_date"),
    )

    invoice_number: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
        comment="Unique invoice number e.g., INV/2425/001"
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=InvoiceStatus.DRAFT.value,
        nullable=False,
        index=True,
        comment="DRAFT, SENT, PARTIAL, PAID, OVERDUE"
    )
    due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    client: Mapped["Client"] = relationship("Client", lazy="raise")
    payments: Mapped[List["Payment"]] = relationship(
        "Payment",
        back_populates="invoice",
        order_by="Payment.payment_date",
        lazy="raise"
    )

    @property
    def number(self) -> str:
        return self.invoice_number

    def __repr__(self) -> str:
        return f"<Invoice(number='{self.invoice_number}', status='{self.status}')>"


class Quotation(DocumentMixin, Base):
    """Quotation. Shares numbering and tax rules with invoices, carries no payments."""
    __tablename__ = "quotations"
    __table_args__ = (
        Index("ix_quotations_issue_date", "issue_date"),
    )

    quotation_number: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
        comment="Unique quotation number e.g., Q/IN2425/001"
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=QuotationStatus.DRAFT.value,
        nullable=False,
        index=True,
        comment="DRAFT, SENT, ACCEPTED, REJECTED, EXPIRED"
    )
    expiry_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    contract_terms: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    services_offered: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    client: Mapped["Client"] = relationship("Client", lazy="raise")

    @property
    def number(self) -> str:
        return self.quotation_number

    def __repr__(self) -> str:
        return f"<Quotation(number='{self.quotation_number}', status='{self.status}')>"


class Payment(Base):
    """
    Payment received against an invoice.
    Append-only: there is no update or delete path.
    """
    __tablename__ = "payments"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    invoice_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("invoices.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )

    amount_received: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)
    payment_method: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        comment="CASH, CHEQUE, RTGS, NEFT, IMPS, UPI, CARD, WIRE, OTHER"
    )
    reference_no: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        comment="UTR/Cheque/Transaction ID"
    )
    notes: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    invoice: Mapped["Invoice"] = relationship("Invoice", back_populates="payments", lazy="raise")

    def __repr__(self) -> str:
        return f"<Payment(invoice_id='{self.invoice_id}', amount={self.amount_received})>"
