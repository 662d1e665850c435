from decimal import Decimal

import pytest

from billbook.services.tax_service import (
    TaxClassifier,
    TaxRegime,
    TaxService,
    UNCONFIGURED_WARNING,
    classify,
    compute_tax_amounts,
)


def test_same_state_splits_rate():
    result = classify(27, 27, "India")
    assert result.regime == TaxRegime.INTRASTATE
    assert result.gst_rate == Decimal("18")
    assert result.breakdown.as_dict() == {"cgst": Decimal("9"), "sgst": Decimal("9"), "igst": Decimal("0")}
    assert not result.is_degraded


def test_other_state_is_igst():
    result = classify(27, 29, "India")
    assert result.regime == TaxRegime.INTERSTATE
    assert result.gst_rate == Decimal("18")
    assert result.breakdown.as_dict() == {"cgst": Decimal("0"), "sgst": Decimal("0"), "igst": Decimal("18")}


@pytest.mark.parametrize("state", [27, 29, 99, None])
def test_foreign_client_is_zero_rated(state):
    result = classify(27, state, "United States")
    assert result.regime == TaxRegime.EXPORT
    assert result.gst_rate == Decimal("0")
    assert result.breakdown.as_dict() == {"cgst": Decimal("0"), "sgst": Decimal("0"), "igst": Decimal("0")}


def test_country_comparison_ignores_case():
    assert classify(27, 27, "INDIA").regime == TaxRegime.INTRASTATE
    assert classify(27, 27, " india ").regime == TaxRegime.INTRASTATE


def test_missing_country_is_treated_as_domestic():
    assert classify(27, 27, None).regime == TaxRegime.INTRASTATE
    assert classify(27, 29, "").regime == TaxRegime.INTERSTATE


def test_unconfigured_home_state_degrades_to_igst(caplog):
    result = classify(None, 27, "India")
    assert result.regime == TaxRegime.INTERSTATE
    assert result.gst_rate == Decimal("18")
    assert result.breakdown.igst == Decimal("18")
    assert result.is_degraded
    assert result.warning == UNCONFIGURED_WARNING
    assert UNCONFIGURED_WARNING in caplog.text


def test_unconfigured_check_comes_before_export():
    assert classify(None, None, "United States").regime == TaxRegime.INTERSTATE


def test_rate_is_configurable():
    result = TaxClassifier(27, gst_rate=Decimal("12")).classify(27, "India")
    assert result.breakdown.cgst == Decimal("6")
    assert result.breakdown.sgst == Decimal("6")


def test_compute_tax_amounts_rounds_to_paise():
    amounts = compute_tax_amounts(Decimal("999.99"), classify(27, 27, "India"))
    assert amounts.cgst == Decimal("90.00")
    assert amounts.sgst == Decimal("90.00")
    assert amounts.igst == Decimal("0.00")
    assert amounts.total == Decimal("180.00")


def test_compute_tax_amounts_for_export_is_zero():
    amounts = compute_tax_amounts(Decimal("5000"), classify(27, 99, "Canada"))
    assert amounts.total == Decimal("0")


async def test_service_uses_company_profile(db, company):
    service = TaxService(db)
    assert (await service.classify_client(27, "India")).regime == TaxRegime.INTRASTATE
    assert (await service.classify_client(29, "India")).regime == TaxRegime.INTERSTATE


async def test_service_without_company_profile_is_degraded(db):
    result = await TaxService(db).classify_client(27, "India")
    assert result.regime == TaxRegime.INTERSTATE
    assert result.is_degraded
