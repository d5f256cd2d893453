"""Tests for the delivery summary and display shapes."""

from datetime import date

import pytest
from pydantic import ValidationError

from paystub.sdk.config import BUNDLED_TAX_RULES_DIR
from paystub.sdk import PayrollEngine, build_stub_summary, load_tax_tables_file, result_to_display


@pytest.fixture(scope="module")
def result():
    engine = PayrollEngine(load_tax_tables_file(BUNDLED_TAX_RULES_DIR / "2025.yaml"))
    return engine.compute(
        [{"type": "Regular", "rate": 20, "hours": 40}],
        [{"description": "401k", "amount": 40, "category": "pre_tax"}],
        pay_frequency="Weekly",
        filing_status="Single",
        residency_surcharge=True,
    )


def test_stub_summary(result):
    summary = build_stub_summary(result, "Jane Doe", "Acme LLC", "2025-01-03")

    assert summary.pay_date == date(2025, 1, 3)
    assert summary.net_pay == result.net_pay
    assert summary.total_deductions == result.total_deductions

    payload = summary.model_dump(mode="json")
    assert payload["employee_name"] == "Jane Doe"
    assert payload["company_name"] == "Acme LLC"
    assert payload["pay_date"] == "2025-01-03"
    assert payload["net_pay"] == float(result.net_pay)
    assert isinstance(payload["gross_pay"], float)


def test_stub_summary_requires_names(result):
    with pytest.raises(ValidationError):
        build_stub_summary(result, "", "Acme LLC", date(2025, 1, 3))


def test_display_shape(result):
    display = result_to_display(result)

    assert display["current"]["gross_pay"] == 800.0
    assert display["current"]["taxable_gross"] == 760.0
    assert display["current"]["taxes"]["local.resident_city"] == 7.6
    assert display["ytd"]["gross_pay"] == 800.0
    assert display["earnings"][0]["description"] == "Regular"
    assert display["deductions"] == [{"description": "401k", "category": "pre_tax", "amount": 40.0}]
    assert display["warnings"] == []
    # Audit values keep full precision as strings
    assert all(isinstance(v, str) for v in display["unrounded"].values())
