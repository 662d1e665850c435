from pydantic_settings import BaseSettings
from pydantic import field_validator
from decimal import Decimal
from functools import lru_cache
import json


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./billbook.db"

    # Database Connection Pool Settings
    DB_POOL_SIZE: int = 10  # Base number of connections in pool
    DB_MAX_OVERFLOW: int = 20  # Extra connections allowed beyond pool_size
    DB_POOL_TIMEOUT: int = 30  # Seconds to wait for connection from pool
    DB_POOL_RECYCLE: int = 1800  # Recycle connections after 30 minutes

    # App Settings
    APP_NAME: str = "Billbook"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # CORS - accepts JSON string, comma-separated, or list
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Tax Settings
    HOME_COUNTRY: str = "India"
    DEFAULT_GST_RATE: Decimal = Decimal("18.00")  # Combined GST rate in percent

    # Payment Reconciliation
    PAYMENT_ROUNDING_BUFFER: Decimal = Decimal("0.50")  # Absolute tolerance before an invoice counts as PAID
    DEFAULT_CURRENCY: str = "INR"

    # Document Numbering
    INVOICE_NUMBER_FORMAT: str = "INV/{FY}/{SEQ:3}"
    QUOTATION_NUMBER_FORMAT: str = "Q/{CC}{FY}/{SEQ:3}"
    INVOICE_LABEL: str = "INVOICE"
    QUOTATION_LABEL: str = "QUOTATION"
    INVOICE_SEQUENCE_SCOPE: str = "FISCAL_YEAR"  # Options: FISCAL_YEAR, GLOBAL
    QUOTATION_SEQUENCE_SCOPE: str = "GLOBAL"  # Quotations keep one running sequence
    GLOBAL_SEQUENCE_KEY: str = "GLOBAL_SEQ"

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(',')]
        return v

    @field_validator('INVOICE_SEQUENCE_SCOPE', 'QUOTATION_SEQUENCE_SCOPE', mode='before')
    @classmethod
    def normalize_scope(cls, v):
        if isinstance(v, str):
            v = v.strip().upper()
            if v not in ("FISCAL_YEAR", "GLOBAL"):
                raise ValueError(f"Invalid sequence scope '{v}'. Valid scopes: FISCAL_YEAR, GLOBAL")
        return v

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
