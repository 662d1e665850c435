"""Client model."""
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import String, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from billbook.database import Base
from billbook.db_types import UUIDType


# GST code used for clients outside India
EXPORT_STATE_CODE = 99

# GST State Code mapping
GST_STATE_CODES = {
    1: "Jammu & Kashmir", 2: "Himachal Pradesh", 3: "Punjab",
    4: "Chandigarh", 5: "Uttarakhand", 6: "Haryana",
    7: "Delhi", 8: "Rajasthan", 9: "Uttar Pradesh",
    10: "Bihar", 11: "Sikkim", 12: "Arunachal Pradesh",
    13: "Nagaland", 14: "Manipur", 15: "Mizoram",
    16: "Tripura", 17: "Meghalaya", 18: "Assam",
    19: "West Bengal", 20: "Jharkhand", 21: "Odisha",
    22: "Chhattisgarh", 23: "Madhya Pradesh", 24: "Gujarat",
    25: "Daman & Diu", 26: "Dadra & Nagar Haveli", 27: "Maharashtra",
    28: "Andhra Pradesh (Old)", 29: "Karnataka", 30: "Goa",
    31: "Lakshadweep", 32: "Kerala", 33: "Tamil Nadu",
    34: "Puducherry", 35: "Andaman & Nicobar Islands", 36: "Telangana",
    37: "Andhra Pradesh", 38: "Ladakh", 97: "Other Territory",
    EXPORT_STATE_CODE: "International / Export",
}


class Client(Base):
    """Billed party. state_code and country drive tax classification."""
    __tablename__ = "clients"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        primary_key=True,
        default=uuid.uuid4
    )

    company_name: Mapped[str] = mapped_column(String(200), nullable=False)
    tax_id: Mapped[Optional[str]] = mapped_column(String(20), nullable=True, comment="GSTIN or foreign tax ID")
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    state_code: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="GST state code, 99 for international clients"
    )
    country: Mapped[str] = mapped_column(String(100), default="India", nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    @property
    def state_name(self) -> Optional[str]:
        return GST_STATE_CODES.get(self.state_code)

    def __repr__(self) -> str:
        return f"<Client(name='{self.company_name}', state={self.state_code}, country='{self.country}')>"
