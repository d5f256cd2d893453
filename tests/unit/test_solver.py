"""Tests for the net-to-gross solver."""

from decimal import Decimal

import pytest

from paystub.sdk.config import BUNDLED_TAX_RULES_DIR
from paystub.sdk import InputError, PayrollEngine, load_tax_tables_file, solve_gross_for_net


@pytest.fixture(scope="module")
def engine():
    return PayrollEngine(load_tax_tables_file(BUNDLED_TAX_RULES_DIR / "2025.yaml"))


def test_solves_known_stub(engine):
    """$800 weekly gross nets $660.35 for a single filer."""
    solved = solve_gross_for_net(engine, "660.35", pay_frequency="Weekly", filing_status="Single")

    assert solved["gross"] == Decimal("800.00")
    assert solved["net"] == Decimal("660.35")
    assert solved["result"].earnings[0].type == "Salary"


def test_smallest_gross_reaching_target(engine):
    solved = solve_gross_for_net(engine, 1500, pay_frequency="Bi-Weekly", filing_status="Single")
    one_cent_less = engine.compute(
        [{"type": "Salary", "rate": solved["gross"] - Decimal("0.01")}],
        pay_frequency="Bi-Weekly",
        filing_status="Single",
    )

    assert solved["net"] >= Decimal("1500")
    assert one_cent_less.net_pay < Decimal("1500")


def test_deductions_and_ytd_apply(engine):
    plain = solve_gross_for_net(engine, 1000, pay_frequency="Weekly")
    with_deduction = solve_gross_for_net(
        engine, 1000,
        deductions=[{"description": "Medical", "amount": 50, "category": "post_tax"}],
        pay_frequency="Weekly",
    )
    assert with_deduction["gross"] > plain["gross"]


def test_negative_target(engine):
    with pytest.raises(InputError) as exc_info:
        solve_gross_for_net(engine, -5)
    assert "desired_net" in exc_info.value.errors


def test_non_numeric_target(engine):
    with pytest.raises(InputError):
        solve_gross_for_net(engine, "a lot")


def test_zero_target_is_zero_gross(engine):
    solved = solve_gross_for_net(engine, 0, pay_frequency="Weekly")

    assert solved["gross"] == Decimal("0")
    assert solved["net"] == Decimal("0")
    assert solved["iterations"] == 0


def test_zero_target_with_post_tax_deduction(engine):
    deductions = [{"description": "Medical", "amount": 25, "category": "post_tax"}]
    solved = solve_gross_for_net(engine, 0, deductions=deductions, pay_frequency="Weekly")
    one_cent_less = engine.compute(
        [{"type": "Salary", "rate": solved["gross"] - Decimal("0.01")}],
        deductions,
        pay_frequency="Weekly",
    )

    assert solved["gross"] > Decimal("25")
    assert solved["net"] >= Decimal("0")
    assert one_cent_less.net_pay < Decimal("0")


@pytest.mark.parametrize("cents", range(35, 46))
def test_cent_rounding_dips_settled(engine, cents):
    """Around $1,000 weekly a one-cent raise can lower net by a cent."""
    target = Decimal("808") + Decimal(cents) / 100
    solved = solve_gross_for_net(engine, target, pay_frequency="Weekly", filing_status="Single")
    one_cent_less = engine.compute(
        [{"type": "Salary", "rate": solved["gross"] - Decimal("0.01")}],
        pay_frequency="Weekly",
        filing_status="Single",
    )

    assert solved["net"] >= target
    assert one_cent_less.net_pay < target


def test_state_taxes_off_needs_less_gross(engine):
    with_state = solve_gross_for_net(engine, 660.35, pay_frequency="Weekly")
    federal_only = solve_gross_for_net(engine, 660.35, pay_frequency="Weekly", state_taxes=False)

    assert federal_only["gross"] < with_state["gross"]
    assert federal_only["result"].taxes.state_income == Decimal("0")
