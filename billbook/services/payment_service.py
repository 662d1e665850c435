"""
Payment recording and invoice status reconciliation.

An invoice's payment status is a pure function of its grand total and the
full set of payments recorded against it. Recording a payment and writing
the recomputed status happen in one transaction, under a row lock on the
invoice, so the status never lags behind the payments.
"""

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional, Union

from sqlalchemy import select, func
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from billbook.config import settings
from billbook.core.exceptions import NotFoundError, TransientContention, ValidationError
from billbook.models.billing import Invoice, InvoiceStatus, Payment
from billbook.schemas.billing import PaymentCreate


logger = logging.getLogger(__name__)


ZERO = Decimal("0")


def total_received(payments: Iterable[Union[Payment, Decimal]]) -> Decimal:
    """Sum payment amounts. Accepts Payment rows or bare amounts."""
    total = ZERO
    for payment in payments:
        amount = getattr(payment, "amount_received", payment)
        total += Decimal(str(amount))
    return total


def reconcile(
    grand_total: Decimal,
    payments: Iterable[Union[Payment, Decimal]],
    current_status: Union[InvoiceStatus, str] = InvoiceStatus.DRAFT,
    rounding_buffer: Optional[Decimal] = None,
) -> InvoiceStatus:
    """
    Derive an invoice status from its payments.

    Rules, first match wins:
    - Already PAID → PAID (never downgraded)
    - Paid within the rounding buffer of the grand total → PAID, which
      includes a grand total at or below the buffer with nothing paid
    - Anything paid → PARTIAL
    - Nothing paid → current status unchanged (DRAFT/SENT/OVERDUE)
    """
    current = InvoiceStatus(current_status)
    buffer = settings.PAYMENT_ROUNDING_BUFFER if rounding_buffer is None else Decimal(str(rounding_buffer))
    paid = total_received(payments)

    if current == InvoiceStatus.PAID:
        return current
    if paid >= Decimal(str(grand_total)) - buffer:
        return InvoiceStatus.PAID
    if paid > ZERO:
        return InvoiceStatus.PARTIAL
    return current


@dataclass
class PaymentRecord:
    """Result of recording a payment."""
    payment: Payment
    invoice_status: InvoiceStatus
    total_paid: Decimal
    balance_due: Decimal


class PaymentService:
    """Service for recording payments against invoices."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record_payment(self, invoice_id: uuid.UUID, payment_in: PaymentCreate) -> PaymentRecord:
        """
        Record a payment and reconcile the invoice status.

        Flow:
        1. Lock the invoice row
        2. Insert the payment
        3. Re-read all payments for the invoice
        4. Write the reconciled status

        Raises:
            NotFoundError: if the invoice does not exist
            ValidationError: if the amount is not positive
            TransientContention: if the invoice row could not be locked
        """
        amount = Decimal(str(payment_in.amount_received))
        if amount <= ZERO:
            raise ValidationError(
                f"Payment amount must be positive, got {amount}",
                {"amount_received": str(amount)},
            )

        invoice = await self._get_invoice_for_update(invoice_id)

        payment = Payment(
            invoice_id=invoice.id,
            amount_received=amount,
            payment_date=payment_in.payment_date,
            payment_method=payment_in.payment_method.value if payment_in.payment_method else None,
            reference_no=payment_in.reference_no,
            notes=payment_in.notes,
        )
        self.db.add(payment)
        await self.db.flush()

        payments = await self.get_payments(invoice.id)
        old_status = invoice.status
        new_status = reconcile(invoice.grand_total, payments, old_status)
        invoice.status = new_status.value
        await self.db.flush()

        total_paid = total_received(payments)
        logger.info(
            f"Recorded payment of {amount} against invoice {invoice.invoice_number}: "
            f"paid {total_paid}/{invoice.grand_total}, status {old_status} → {new_status.value}"
        )

        return PaymentRecord(
            payment=payment,
            invoice_status=new_status,
            total_paid=total_paid,
            balance_due=self.balance_due(invoice.grand_total, total_paid),
        )

    async def get_payments(self, invoice_id: uuid.UUID) -> List[Payment]:
        """All payments for an invoice, oldest first."""
        result = await self.db.execute(
            select(Payment)
            .where(Payment.invoice_id == invoice_id)
            .order_by(Payment.payment_date, Payment.created_at)
        )
        return list(result.scalars().all())

    async def get_total_paid(self, invoice_id: uuid.UUID) -> Decimal:
        result = await self.db.execute(
            select(func.coalesce(func.sum(Payment.amount_received), 0))
            .where(Payment.invoice_id == invoice_id)
        )
        return Decimal(str(result.scalar() or 0))

    async def reconcile_invoice(self, invoice: Invoice) -> InvoiceStatus:
        """Recompute and store the status of an already-locked invoice."""
        payments = await self.get_payments(invoice.id)
        new_status = reconcile(invoice.grand_total, payments, invoice.status)
        invoice.status = new_status.value
        return new_status

    @staticmethod
    def balance_due(grand_total: Decimal, total_paid: Decimal) -> Decimal:
        balance = Decimal(str(grand_total)) - total_paid
        return balance if balance > ZERO else ZERO

    async def _get_invoice_for_update(self, invoice_id: uuid.UUID) -> Invoice:
        try:
            result = await self.db.execute(
                select(Invoice)
                .where(Invoice.id == invoice_id)
                .with_for_update()
            )
        except OperationalError as e:
            logger.warning(f"Could not lock invoice {invoice_id}: {e}")
            raise TransientContention(
                f"Invoice {invoice_id} is being updated, please retry",
                {"invoice_id": str(invoice_id)},
            ) from e

        invoice = result.scalar_one_or_none()
        if not invoice:
            raise NotFoundError("Invoice", invoice_id)
        return invoice
