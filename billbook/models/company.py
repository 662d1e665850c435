"""Company profile and system settings models."""
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, Boolean, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from billbook.database import Base
from billbook.db_types import UUIDType, JSONType


class CompanyProfile(Base):
    """
    The business's own registration details.

    Read by the tax classifier: home_state_code decides between
    intra-state (CGST+SGST) and inter-state (IGST) supply.
    """
    __tablename__ = "company_profile"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    company_name: Mapped[str] = mapped_column(String(200), nullable=False)
    gstin: Mapped[Optional[str]] = mapped_column(String(15), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    home_state_code: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="GST state code of the registered place of business"
    )
    home_country: Mapped[str] = mapped_column(String(100), default="India", nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

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
        return f"<CompanyProfile(name='{self.company_name}', state={self.home_state_code})>"


class SystemSetting(Base):
    """Key/value store for settings editable at runtime (e.g. DOCUMENT_SETTINGS)."""
    __tablename__ = "system_settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    json_value: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    is_locked: Mapped[bool] = mapped_column(Boolean, default=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<SystemSetting(key='{self.key}')>"
