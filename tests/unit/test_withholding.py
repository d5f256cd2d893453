"""Unit tests for per-period withholding calculations.

Tests:
1. Pay frequency lookup (spellings, unknown frequency)
2. Income tax annualization with a deduction floor
3. Capped contributions: below, crossing, at and past the wage cap
4. Additional Medicare: only the slice over the threshold, none without one
5. Filing status resolution: federal has no fallback, state uses default_status
"""

from decimal import Decimal

import pytest

from paystub.sdk import ConfigurationError
from paystub.sdk.taxes import (
    CappedContribution,
    MedicareRules,
    StateTables,
    TaxBracket,
    calc_capped_contribution,
    calc_income_tax_per_period,
    calc_medicare_withholding,
    get_pay_periods,
)
from paystub.sdk.taxes.withholding import resolve_state_brackets


# === TEST CONSTANTS ===

SS_WAGE_CAP = Decimal("176100")
SS_RATE = Decimal("0.062")
MEDICARE_THRESHOLD = Decimal("200000")


@pytest.fixture
def social_security():
    return CappedContribution(rate=SS_RATE, wage_cap=SS_WAGE_CAP)


@pytest.fixture
def medicare():
    return MedicareRules(rate="0.0145", additional_rate="0.009", additional_rate_threshold=MEDICARE_THRESHOLD)


class TestPayPeriods:

    @pytest.mark.parametrize("frequency,expected", [
        ("Weekly", 52),
        ("Bi-Weekly", 26),
        ("biweekly", 26),
        ("Semi-Monthly", 24),
        ("semi_monthly", 24),
        ("Monthly", 12),
    ])
    def test_known_frequencies(self, frequency, expected):
        assert get_pay_periods(frequency) == expected

    def test_unknown_frequency(self):
        with pytest.raises(ConfigurationError, match="Daily"):
            get_pay_periods("Daily")


def test_income_tax_deduction_floors_at_zero():
    brackets = [TaxBracket(lower=0, upper=None, rate="0.10")]
    result = calc_income_tax_per_period(Decimal("100"), 52, brackets, annual_deduction=Decimal("15750"))

    assert result["annual_wages"] == Decimal("5200")
    assert result["annual_taxable"] == Decimal("0")
    assert result["withheld"] == Decimal("0")


def test_income_tax_de_annualizes():
    brackets = [TaxBracket(lower=0, upper=None, rate="0.10")]
    result = calc_income_tax_per_period(Decimal("1000"), 26, brackets, annual_deduction=Decimal("6000"))

    # (26000 - 6000) * 0.10 / 26
    assert result["annual_tax"] == Decimal("2000")
    assert result["withheld"] == Decimal("2000") / 26


class TestCappedContribution:

    def test_below_cap(self, social_security):
        result = calc_capped_contribution(Decimal("1000"), Decimal("50000"), social_security)
        assert result["taxable"] == Decimal("1000")
        assert result["withheld"] == Decimal("62.000")
        assert result["capped"] is False

    def test_crossing_cap_taxes_remaining_room(self, social_security):
        result = calc_capped_contribution(Decimal("500"), SS_WAGE_CAP - 100, social_security)
        assert result["taxable"] == Decimal("100")
        assert result["withheld"] == Decimal("6.200")
        assert result["capped"] is True

    def test_at_cap_is_zero(self, social_security):
        result = calc_capped_contribution(Decimal("500"), SS_WAGE_CAP, social_security)
        assert result["taxable"] == Decimal("0")
        assert result["withheld"] == Decimal("0")

    def test_past_cap_is_zero(self, social_security):
        result = calc_capped_contribution(Decimal("500"), SS_WAGE_CAP + 5000, social_security)
        assert result["withheld"] == Decimal("0")

    def test_uncapped(self):
        rules = CappedContribution(rate="0.01", wage_cap=None)
        result = calc_capped_contribution(Decimal("500"), Decimal("10000000"), rules)
        assert result["withheld"] == Decimal("5.00")


class TestAdditionalMedicare:

    def test_below_threshold(self, medicare):
        result = calc_medicare_withholding(Decimal("1000"), Decimal("100000"), medicare)
        assert result["additional_wages"] == Decimal("0")
        assert result["withheld"] == Decimal("14.5000")

    def test_crossing_threshold_taxes_only_new_slice(self, medicare):
        result = calc_medicare_withholding(Decimal("500"), MEDICARE_THRESHOLD - 100, medicare)
        assert result["additional_wages"] == Decimal("400")
        assert result["additional_withheld"] == Decimal("3.600")
        assert result["withheld"] == Decimal("7.2500") + Decimal("3.600")
        assert result["over_threshold"] is True

    def test_already_over_threshold(self, medicare):
        result = calc_medicare_withholding(Decimal("500"), MEDICARE_THRESHOLD + 50000, medicare)
        assert result["additional_wages"] == Decimal("500")

    def test_no_threshold_means_no_additional_tax(self):
        rules = MedicareRules(rate="0.0145", additional_rate="0.009")
        result = calc_medicare_withholding(Decimal("500"), Decimal("1000000"), rules)

        assert rules.additional_rate_threshold is None
        assert result["additional_wages"] == Decimal("0")
        assert result["withheld"] == Decimal("7.2500")
        assert result["over_threshold"] is False


class TestStateStatusFallback:

    @pytest.fixture
    def state_brackets(self):
        return {
            "single": [{"lower": 0, "upper": None, "rate": "0.02"}],
            "married_filing_jointly": [{"lower": 0, "upper": None, "rate": "0.01"}],
        }

    def test_uses_default_status(self, state_brackets):
        tables = StateTables(name="Test", brackets=state_brackets, default_status="Single")
        brackets = resolve_state_brackets(tables, "Head of Household")
        assert brackets[0].rate == Decimal("0.02")

    def test_exact_status_preferred(self, state_brackets):
        tables = StateTables(name="Test", brackets=state_brackets, default_status="single")
        brackets = resolve_state_brackets(tables, "MFJ")
        assert brackets[0].rate == Decimal("0.01")

    def test_no_default_status_is_error(self, state_brackets):
        tables = StateTables(name="Test", brackets=state_brackets)
        with pytest.raises(ConfigurationError, match="Head of Household"):
            resolve_state_brackets(tables, "Head of Household")
