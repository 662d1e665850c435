from billbook.models.document_sequence import SequenceCounter, DocumentSeries, SequenceScope
from billbook.models.company import CompanyProfile, SystemSetting
from billbook.models.client import Client, EXPORT_STATE_CODE, GST_STATE_CODES
from billbook.models.billing import (
    Invoice, Quotation, Payment,
    InvoiceStatus, QuotationStatus, PaymentMode,
)

__all__ = [
    "SequenceCounter", "DocumentSeries", "SequenceScope",
    "CompanyProfile", "SystemSetting",
    "Client", "EXPORT_STATE_CODE", "GST_STATE_CODES",
    "Invoice", "Quotation", "Payment",
    "InvoiceStatus", "QuotationStatus", "PaymentMode",
]
