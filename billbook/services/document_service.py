"""
Document creation and numbering for invoices and quotations.

CREATION (one transaction):
    1. Manual(number) → reject if a document of the same type already has it
       Auto           → allocate from the type's sequence scope and render
    2. Derive GST from the client's state/country and the company profile
    3. Insert with status DRAFT

Any failure rolls back the whole unit of work, sequence increment included.
The unique constraint on the number column is the final authority; the
pre-check only gives a better error.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Union, Type, Tuple, List, FrozenSet

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from billbook.config import settings
from billbook.core.exceptions import (
    NotFoundError, DocumentNumberConflict, TransientContention, ValidationError, ConfigurationMissing,
)
from billbook.models.client import Client
from billbook.models.document_sequence import DocumentSeries, SequenceScope, SequenceCounter
from billbook.schemas.billing import AutoNumbering, ManualNumbering, DocumentBase, DocumentUpdate
from billbook.services.client_service import ClientService
from billbook.services.document_number_formatter import NumberContext, render, fiscal_year_scope
from billbook.services.document_sequence_service import SequenceAllocator
from billbook.services.settings_service import SettingsService
from billbook.services.tax_service import TaxService, TaxClassification, compute_tax_amounts


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Auto:
    """Number comes from the document type's sequence."""


@dataclass(frozen=True)
class Manual:
    """Number supplied by the caller."""
    number: str


NumberingPolicy = Union[Auto, Manual]


def numbering_from_schema(numbering: Union[AutoNumbering, ManualNumbering, None]) -> NumberingPolicy:
    if isinstance(numbering, ManualNumbering):
        number = numbering.number.strip()
        if not number:
            raise ValidationError("Manual numbering requires a document number")
        return Manual(number)
    return Auto()


@dataclass
class NumberPreview:
    document_type: str
    scope_key: str
    next_sequence: int
    next_number: str


class DocumentService:
    """
    Shared orchestration for numbered documents.

    Subclasses set the model, its number column, the series that owns the
    counters and the statuses a caller may set directly.
    """

    model: Type = None
    series: DocumentSeries = None
    number_field: str = None
    status_enum: Type = None
    settable_statuses: FrozenSet[str] = frozenset()
    scope_setting: str = None
    format_field: str = None

    def __init__(self, db: AsyncSession):
        self.db = db
        self.allocator = SequenceAllocator(db, self.series)
        self.tax_service = TaxService(db)
        self.settings_service = SettingsService(db)
        self.client_service = ClientService(db)

    @property
    def label(self) -> str:
        return self.series.value.lower()

    @property
    def number_column(self):
        return getattr(self.model, self.number_field)

    # ==================== Numbering ====================

    def scope_policy(self) -> SequenceScope:
        return SequenceScope(getattr(settings, self.scope_setting))

    def scope_key_for(self, issue_date: date) -> str:
        """Counter scope for a document issued on ``issue_date``."""
        if self.scope_policy() == SequenceScope.GLOBAL:
            if not settings.GLOBAL_SEQUENCE_KEY:
                raise ConfigurationMissing(
                    f"GLOBAL_SEQUENCE_KEY is empty; cannot number {self.label}s",
                    {"setting": "GLOBAL_SEQUENCE_KEY"},
                )
            return settings.GLOBAL_SEQUENCE_KEY
        return fiscal_year_scope(issue_date)

    async def get_number_format(self) -> str:
        document_settings = await self.settings_service.get_document_settings()
        return getattr(document_settings, self.format_field)

    async def number_exists(self, number: str) -> bool:
        result = await self.db.execute(
            select(self.model.id).where(self.number_column == number)
        )
        return result.scalar_one_or_none() is not None

    async def assign_number(self, policy: NumberingPolicy, issue_date: date, client: Client) -> Tuple[str, bool]:
        """
        Resolve the number for a new document.

        Returns:
            (number, is_manual_entry)
        """
        if isinstance(policy, Manual):
            if await self.number_exists(policy.number):
                logger.warning(f"Rejected duplicate manual {self.label} number {policy.number}")
                raise DocumentNumberConflict(self.series.value, policy.number)
            return policy.number, True

        scope_key = self.scope_key_for(issue_date)
        template = await self.get_number_format()

        while True:
            sequence = await self.allocator.allocate(scope_key)
            context = NumberContext.for_document(issue_date, sequence, client.country)
            number = render(template, context)
            if not await self.number_exists(number):
                return number, False
            # Taken by a manually numbered document: that value is used up
            logger.warning(
                f"{self.label.title()} number {number} already taken by a manual entry, "
                f"skipping sequence {sequence} in {scope_key}"
            )

    async def preview_next_number(self, issue_date: Optional[date] = None, client_country: Optional[str] = None) -> NumberPreview:
        """What the next auto number would be, without allocating it."""
        issue_date = issue_date or date.today()
        scope_key = self.scope_key_for(issue_date)
        next_sequence = await self.allocator.peek(scope_key) + 1
        template = await self.get_number_format()
        return NumberPreview(
            document_type=self.series.value,
            scope_key=scope_key,
            next_sequence=next_sequence,
            next_number=render(template, NumberContext.for_document(issue_date, next_sequence, client_country)),
        )

    async def set_next_number(self, next_number: int, on_date: Optional[date] = None) -> SequenceCounter:
        """Set the next sequence value for the scope ``on_date`` falls in (today by default)."""
        scope_key = self.scope_key_for(on_date or date.today())
        return await self.allocator.set_next(scope_key, next_number)

    # ==================== Tax ====================

    async def apply_tax(
        self,
        document,
        client: Client,
        subtotal: Decimal,
        grand_total: Optional[Decimal] = None,
    ) -> TaxClassification:
        """Classify the supply and write tax figures onto the document."""
        classification = await self.tax_service.classify_client(client.state_code, client.country)
        if classification.is_degraded:
            logger.warning(
                f"{self.label.title()} for client {client.id} taxed in degraded mode: {classification.warning}"
            )

        amounts = compute_tax_amounts(subtotal, classification)
        document.subtotal = subtotal
        document.tax_type = classification.regime.value
        document.gst_rate = classification.gst_rate
        document.cgst_amount = amounts.cgst
        document.sgst_amount = amounts.sgst
        document.igst_amount = amounts.igst
        document.total_tax = amounts.total
        document.grand_total = grand_total if grand_total is not None else subtotal + amounts.total
        return classification

    # ==================== Create ====================

    async def create(self, data: DocumentBase, numbering: Optional[NumberingPolicy] = None):
        """
        Create a document in DRAFT.

        Raises:
            NotFoundError: unknown client
            DocumentNumberConflict: manual number already used
            TransientContention: lost a race on the sequence or number; retry
        """
        policy = numbering or numbering_from_schema(data.numbering)
        client = await self.get_client(data.client_id)

        try:
            number, is_manual = await self.assign_number(policy, data.issue_date, client)
        except OperationalError as e:
            raise TransientContention(
                f"Could not number {self.label}, please retry", {"document_type": self.series.value}
            ) from e

        fields = data.model_dump(exclude={"numbering", "grand_total", "line_items"})
        fields["line_items"] = data.model_dump(mode="json", include={"line_items"})["line_items"]
        document = self.model(
            **fields,
            **{self.number_field: number},
            is_manual_entry=is_manual,
            status=self.status_enum.DRAFT.value,
        )
        await self.apply_tax(document, client, data.subtotal, data.grand_total)

        self.db.add(document)
        try:
            await self.db.flush()
        except IntegrityError as e:
            # A concurrent insert took the number between the check and the flush
            if is_manual:
                logger.warning(f"Manual {self.label} number {number} lost a concurrent insert")
                raise DocumentNumberConflict(self.series.value, number) from e
            logger.warning(f"Auto {self.label} number {number} collided with a concurrent insert")
            raise TransientContention(
                f"{self.label.title()} number {number} was taken concurrently, please retry",
                {"document_type": self.series.value, "number": number},
            ) from e

        logger.info(
            f"Created {self.label} {number} ({'manual' if is_manual else 'auto'}) "
            f"for client {client.company_name}: {document.tax_type} total {document.grand_total}"
        )
        return document

    # ==================== Read ====================

    async def get_client(self, client_id: uuid.UUID) -> Client:
        return await self.client_service.get_client(client_id)

    async def get(self, document_id: uuid.UUID):
        document = await self.db.get(self.model, document_id)
        if not document:
            raise NotFoundError(self.series.value.title(), document_id)
        return document

    async def list_documents(
        self,
        skip: int = 0,
        limit: int = 50,
        status: Optional[str] = None,
        client_id: Optional[uuid.UUID] = None,
    ) -> Tuple[List, int]:
        """Documents newest first, with the unpaginated total."""
        filters = []
        if status:
            filters.append(self.model.status == status.upper())
        if client_id:
            filters.append(self.model.client_id == client_id)

        count_result = await self.db.execute(
            select(func.count(self.model.id)).where(*filters)
        )
        total = count_result.scalar() or 0

        result = await self.db.execute(
            select(self.model)
            .where(*filters)
            .order_by(self.model.issue_date.desc(), self.model.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def _get_for_update(self, document_id: uuid.UUID):
        try:
            result = await self.db.execute(
                select(self.model)
                .where(self.model.id == document_id)
                .with_for_update()
            )
        except OperationalError as e:
            raise TransientContention(
                f"{self.label.title()} {document_id} is being updated, please retry",
                {"id": str(document_id)},
            ) from e

        document = result.scalar_one_or_none()
        if not document:
            raise NotFoundError(self.series.value.title(), document_id)
        return document

    # ==================== Update ====================

    async def update(self, document_id: uuid.UUID, data: DocumentUpdate):
        """
        Update editable fields.

        The number and manual-entry flag are fixed at creation and never
        change here. Tax is re-derived when the client or subtotal changes.
        """
        document = await self._get_for_update(document_id)
        changes = data.model_dump(exclude_unset=True)
        for protected in (self.number_field, "is_manual_entry", "status"):
            changes.pop(protected, None)

        old_grand_total = document.grand_total
        retax = "client_id" in changes or "subtotal" in changes
        grand_total = changes.pop("grand_total", None)
        if "line_items" in changes:
            changes["line_items"] = data.model_dump(mode="json", include={"line_items"})["line_items"]

        for field, value in changes.items():
            setattr(document, field, value)

        if retax:
            client = await self.get_client(document.client_id)
            await self.apply_tax(document, client, document.subtotal, grand_total)
        elif grand_total is not None:
            document.grand_total = grand_total

        await self._after_update(document, old_grand_total)
        await self.db.flush()
        logger.info(f"Updated {self.label} {getattr(document, self.number_field)}: {sorted(changes)}")
        return document

    async def _after_update(self, document, old_grand_total: Decimal) -> None:
        """Hook for type-specific follow-up inside the update transaction."""

    # ==================== Status ====================

    async def set_status(self, document_id: uuid.UUID, status: str):
        """Apply a caller-driven status change."""
        try:
            new_status = self.status_enum(status.upper())
        except ValueError:
            valid = ", ".join(s.value for s in self.status_enum)
            raise ValidationError(f"Invalid {self.label} status '{status}'. Valid statuses: {valid}")

        if new_status.value not in self.settable_statuses:
            raise ValidationError(
                f"{self.label.title()} status {new_status.value} cannot be set directly",
                {"status": new_status.value},
            )

        document = await self._get_for_update(document_id)
        await self._check_transition(document, new_status.value)
        old_status = document.status
        document.status = new_status.value
        await self.db.flush()
        logger.info(
            f"{self.label.title()} {getattr(document, self.number_field)} status {old_status} → {new_status.value}"
        )
        return document

    async def _check_transition(self, document, new: str) -> None:
        """Raise ValidationError if moving ``document`` to ``new`` is not allowed."""
