"""GST determination for invoices and quotations.

Decides between intra-state supply (CGST + SGST), inter-state supply
(IGST) and zero-rated export, and splits the combined GST rate into
its components. Amounts are derived from rates by the caller via
``compute_tax_amounts``.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Optional, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from billbook.config import settings
from billbook.services.settings_service import SettingsService


logger = logging.getLogger(__name__)


ZERO = Decimal("0")
TWO_PLACES = Decimal("0.01")

UNCONFIGURED_WARNING = "Company profile has no home state. Defaulting to IGST."


class TaxRegime(str, Enum):
    """Tax regime; values are the tax_type stored on documents."""
    INTRASTATE = "CGST_SGST"
    INTERSTATE = "IGST"
    EXPORT = "NONE"


@dataclass(frozen=True)
class TaxBreakdown:
    cgst: Decimal = ZERO
    sgst: Decimal = ZERO
    igst: Decimal = ZERO

    def as_dict(self) -> Dict[str, Decimal]:
        return {"cgst": self.cgst, "sgst": self.sgst, "igst": self.igst}


@dataclass(frozen=True)
class TaxClassification:
    """Regime plus component rates in percent. ``warning`` is set in degraded mode."""
    regime: TaxRegime
    gst_rate: Decimal
    breakdown: TaxBreakdown = field(default_factory=TaxBreakdown)
    warning: Optional[str] = None

    @property
    def is_degraded(self) -> bool:
        return self.warning is not None


@dataclass(frozen=True)
class TaxAmounts:
    cgst: Decimal
    sgst: Decimal
    igst: Decimal

    @property
    def total(self) -> Decimal:
        return self.cgst + self.sgst + self.igst


class TaxClassifier:
    """
    Pure GST classifier.

    Decision order (first match wins):
    1. Home state not configured → IGST at the default rate, with a warning
    2. Client country is not the home country → zero-rated export
    3. Client state equals home state → CGST + SGST, half the rate each
    4. Otherwise → IGST at the full rate
    """

    def __init__(
        self,
        home_state_code: Optional[int],
        home_country: Optional[str] = None,
        gst_rate: Optional[Decimal] = None,
    ):
        self.home_state_code = home_state_code
        self.home_country = home_country or settings.HOME_COUNTRY
        self.gst_rate = Decimal(str(gst_rate)) if gst_rate is not None else settings.DEFAULT_GST_RATE

    def classify(self, client_state_code: Optional[int], client_country: Optional[str] = None) -> TaxClassification:
        if self.home_state_code is None:
            logger.warning(f"{UNCONFIGURED_WARNING} Rate {self.gst_rate}%.")
            return self._interstate(warning=UNCONFIGURED_WARNING)

        if client_country and client_country.strip().lower() != self.home_country.strip().lower():
            return TaxClassification(regime=TaxRegime.EXPORT, gst_rate=ZERO)

        if client_state_code == self.home_state_code:
            half = self.gst_rate / 2
            return TaxClassification(
                regime=TaxRegime.INTRASTATE,
                gst_rate=self.gst_rate,
                breakdown=TaxBreakdown(cgst=half, sgst=half),
            )

        return self._interstate()

    def _interstate(self, warning: Optional[str] = None) -> TaxClassification:
        return TaxClassification(
            regime=TaxRegime.INTERSTATE,
            gst_rate=self.gst_rate,
            breakdown=TaxBreakdown(igst=self.gst_rate),
            warning=warning,
        )


def classify(
    home_state_code: Optional[int],
    client_state_code: Optional[int],
    client_country: Optional[str] = None,
    gst_rate: Optional[Decimal] = None,
) -> TaxClassification:
    """Convenience wrapper around TaxClassifier for one-off calls."""
    return TaxClassifier(home_state_code, gst_rate=gst_rate).classify(client_state_code, client_country)


def compute_tax_amounts(subtotal: Decimal, classification: TaxClassification) -> TaxAmounts:
    """Per-component tax amounts: subtotal × rate / 100, rounded to paise."""
    subtotal = Decimal(str(subtotal))
    rates = classification.breakdown

    def _amount(rate: Decimal) -> Decimal:
        return (subtotal * rate / 100).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)

    return TaxAmounts(cgst=_amount(rates.cgst), sgst=_amount(rates.sgst), igst=_amount(rates.igst))


class TaxService:
    """Binds the classifier to the stored company profile."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_classifier(self) -> TaxClassifier:
        profile = await SettingsService(self.db).get_company_profile()
        if not profile:
            return TaxClassifier(home_state_code=None)
        return TaxClassifier(
            home_state_code=profile.home_state_code,
            home_country=profile.home_country,
        )

    async def classify_client(self, client_state_code: Optional[int], client_country: Optional[str] = None) -> TaxClassification:
        classifier = await self.get_classifier()
        return classifier.classify(client_state_code, client_country)
