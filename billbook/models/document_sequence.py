"""
Sequence Counter Model for Atomic Number Generation

• One counter row per (series, scope_key)
• Invoices: scope_key is the financial year (April-March), e.g. "24-25"
• Quotations: a single fixed scope_key ("GLOBAL_SEQ") that never resets
• last_count is only ever changed by SequenceAllocator
"""

import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import String, Integer, DateTime, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from billbook.database import Base
from billbook.db_types import UUIDType


class DocumentSeries(str, Enum):
    """Document types that own an independent set of counters."""
    INVOICE = "INVOICE"
    QUOTATION = "QUOTATION"


class SequenceScope(str, Enum):
    """How a series partitions its counters."""
    FISCAL_YEAR = "FISCAL_YEAR"
    GLOBAL = "GLOBAL"


class SequenceCounter(Base):
    """
    Monotonic counter for one counting domain.

    Example:
        series = "INVOICE"
        scope_key = "24-25"
        last_count = 42
        → next invoice in FY 2024-25 gets sequence 43
    """
    __tablename__ = "sequence_counters"
    __table_args__ = (
        UniqueConstraint("series", "scope_key", name="uq_sequence_series_scope"),
        CheckConstraint("last_count >= 0", name="ck_sequence_last_count_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    series: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
        comment="INVOICE, QUOTATION"
    )
    scope_key: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="e.g., 24-25 for FY 2024-25, or GLOBAL_SEQ"
    )
    last_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Last allocated sequence number"
    )

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

    def __repr__(self) -> str:
        return f"<SequenceCounter({self.series}/{self.scope_key}: {self.last_count})>"
