"""Runtime-editable settings: company profile and document number formats."""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from billbook.config import settings
from billbook.models.company import CompanyProfile, SystemSetting
from billbook.schemas.settings import DocumentSettings, CompanyProfileUpdate, format_warnings


logger = logging.getLogger(__name__)


DOCUMENT_SETTINGS_KEY = "DOCUMENT_SETTINGS"


def default_document_settings() -> DocumentSettings:
    return DocumentSettings(
        invoice_format=settings.INVOICE_NUMBER_FORMAT,
        quotation_format=settings.QUOTATION_NUMBER_FORMAT,
        invoice_label=settings.INVOICE_LABEL,
        quotation_label=settings.QUOTATION_LABEL,
    )


class SettingsService:
    """Reads and writes settings stored in the database."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_document_settings(self) -> DocumentSettings:
        """Stored formats, falling back to configured defaults field by field."""
        setting = await self.db.get(SystemSetting, DOCUMENT_SETTINGS_KEY)
        defaults = default_document_settings()
        if not setting or not setting.json_value:
            return defaults

        stored = {k: v for k, v in setting.json_value.items() if v}
        return defaults.model_copy(update=stored)

    async def update_document_settings(self, settings_in: DocumentSettings) -> DocumentSettings:
        value = settings_in.model_dump(exclude={"warnings"})
        setting = await self.db.get(SystemSetting, DOCUMENT_SETTINGS_KEY)
        if setting:
            setting.json_value = value
        else:
            self.db.add(SystemSetting(key=DOCUMENT_SETTINGS_KEY, json_value=value, is_locked=False))
        await self.db.flush()

        warnings = format_warnings(settings_in)
        for warning in warnings:
            logger.warning(warning)
        logger.info(f"Document settings updated: {value}")
        return settings_in.model_copy(update={"warnings": warnings})

    async def get_company_profile(self) -> Optional[CompanyProfile]:
        result = await self.db.execute(
            select(CompanyProfile)
            .where(CompanyProfile.is_active == True)
            .order_by(CompanyProfile.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def upsert_company_profile(self, profile_in: CompanyProfileUpdate) -> CompanyProfile:
        profile = await self.get_company_profile()
        if profile:
            for field, value in profile_in.model_dump().items():
                setattr(profile, field, value)
        else:
            profile = CompanyProfile(**profile_in.model_dump(), is_active=True)
            self.db.add(profile)
        await self.db.flush()
        logger.info(f"Company profile saved: {profile.company_name} (state {profile.home_state_code})")
        return profile
