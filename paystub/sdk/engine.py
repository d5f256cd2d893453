"""Payroll tax engine.

Computes one pay period: gross pay, pre-tax deductions, taxable gross,
federal and state withholding, net pay, and the updated YTD snapshot.

The engine is a pure function of its inputs. Tax tables are injected at
construction and treated as read-only; YTD comes in and goes out as an
immutable snapshot which the caller threads through pay periods in order.

Usage:
    tables = load_tax_tables(2025)
    engine = PayrollEngine(tables)
    result = engine.compute(
        earnings=[{"type": "Regular", "rate": 20, "hours": 40}],
        pay_frequency="Weekly",
        filing_status="Single",
    )
    next_ytd = result.updated_ytd
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Union

from pydantic import ValidationError

from .earnings import calc_gross_pay, canonical_earning_type
from .errors import ConfigurationError, InputError
from .money import ZERO, round_cents, sum_amounts
from .schemas import (
    DeductionLine,
    EarningAmount,
    EarningLine,
    PayPeriodResult,
    TaxAmounts,
    ValidationWarning,
    YTDAccumulators,
)
from .taxes.schemas import TaxTableSet
from .taxes.tables import parse_tax_tables
from .taxes.withholding import calc_federal_taxes, calc_state_taxes, get_pay_periods

logger = logging.getLogger(__name__)

EarningInput = Union[EarningLine, Dict[str, Any]]
DeductionInput = Union[DeductionLine, Dict[str, Any]]
YTDInput = Union[YTDAccumulators, Dict[str, Any], None]

# Capped state contributions: result key -> TaxAmounts field
_STATE_CONTRIBUTIONS = {
    "disability": "state_disability",
    "family_leave": "state_family_leave",
    "unemployment": "state_unemployment",
}


def _format_loc(prefix: str, loc: tuple) -> str:
    path = prefix
    for part in loc:
        path += f"[{part}]" if isinstance(part, int) else f".{part}"
    return path


def _coerce_lines(items: Iterable[Any], model: type, prefix: str, errors: Dict[str, str]) -> List[Any]:
    """Validate each item into `model`, collecting field-level errors."""
    lines = []
    for i, item in enumerate(items or []):
        if isinstance(item, model):
            lines.append(item)
            continue
        try:
            lines.append(model.model_validate(item))
        except ValidationError as e:
            for err in e.errors():
                errors[_format_loc(f"{prefix}[{i}]", err["loc"])] = err["msg"]
    return lines


def _check_non_negative(value: Decimal, path: str, errors: Dict[str, str]) -> None:
    if value < 0:
        errors[path] = f"must not be negative (got {value})"


def validate_inputs(
    earnings: Iterable[EarningInput],
    deductions: Iterable[DeductionInput] = (),
    ytd_in: YTDInput = None,
    allowances: int = 0,
) -> tuple:
    """Validate and coerce raw pay inputs.

    Returns:
        Tuple of (earning_lines, deduction_lines, ytd)

    Raises:
        InputError: With every field-level problem found (non-numeric values,
            negative hours/rates/amounts, unknown deduction category,
            negative allowances, negative YTD amounts other than net_pay)
    """
    errors: Dict[str, str] = {}

    earning_lines = _coerce_lines(earnings, EarningLine, "earnings", errors)
    deduction_lines = _coerce_lines(deductions, DeductionLine, "deductions", errors)

    for i, line in enumerate(earning_lines):
        _check_non_negative(line.rate, f"earnings[{i}].rate", errors)
        _check_non_negative(line.hours, f"earnings[{i}].hours", errors)
    for i, line in enumerate(deduction_lines):
        _check_non_negative(line.amount, f"deductions[{i}].amount", errors)

    if isinstance(allowances, bool) or not isinstance(allowances, int):
        errors["allowances"] = f"must be a whole number (got {allowances!r})"
    elif allowances < 0:
        errors["allowances"] = f"must not be negative (got {allowances})"

    ytd = YTDAccumulators()
    if isinstance(ytd_in, YTDAccumulators):
        ytd = ytd_in
    elif ytd_in is not None:
        try:
            ytd = YTDAccumulators.model_validate(ytd_in)
        except ValidationError as e:
            for err in e.errors():
                errors[_format_loc("ytd", err["loc"])] = err["msg"]

    if errors:
        raise InputError(errors)
    return earning_lines, deduction_lines, ytd


class PayrollEngine:
    """Computes pay periods against an injected, read-only TaxTableSet."""

    def __init__(self, tax_tables: Union[TaxTableSet, Dict[str, Any]]):
        if isinstance(tax_tables, TaxTableSet):
            self.tax_tables = tax_tables
        elif isinstance(tax_tables, dict):
            self.tax_tables = parse_tax_tables(tax_tables)
        else:
            raise ConfigurationError(
                f"tax_tables must be a TaxTableSet or mapping, got {type(tax_tables).__name__}"
            )

    def compute(
        self,
        earnings: Iterable[EarningInput],
        deductions: Iterable[DeductionInput] = (),
        ytd_in: YTDInput = None,
        pay_frequency: str = "Bi-Weekly",
        filing_status: str = "Single",
        allowances: int = 0,
        residency_surcharge: bool = False,
        state_taxes: bool = True,
    ) -> PayPeriodResult:
        """Compute one pay period.

        Args:
            earnings: Earning lines (EarningLine or dicts)
            deductions: Deduction lines (DeductionLine or dicts)
            ytd_in: YTD before this period (None for a new employee)
            pay_frequency: Weekly, Bi-Weekly, Semi-Monthly or Monthly
            filing_status: Filing status key in the bracket tables
            allowances: Withholding allowances. Federal: informational only.
                State: each reduces annual state taxable income by the
                state's per_allowance_deduction.
            residency_surcharge: Apply the state's resident local surcharge
            state_taxes: Withhold the state tables' taxes. False for an
                employee who neither lives nor works in that state; only
                federal taxes are computed.

        Returns:
            PayPeriodResult with rounded amounts, unrounded audit values,
            warnings, and the updated YTD snapshot

        Raises:
            InputError: Malformed or negative inputs (before any computation)
            ConfigurationError: Unknown pay frequency or missing tax tables
        """
        earning_lines, deduction_lines, ytd = validate_inputs(earnings, deductions, ytd_in, allowances)

        periods = get_pay_periods(pay_frequency)
        tables = self.tax_tables
        if residency_surcharge and tables.state is None:
            raise ConfigurationError("Residency surcharge requested but no state tax tables are configured")
        if residency_surcharge and not state_taxes:
            raise ConfigurationError("Residency surcharge requested with state taxes turned off")

        warnings: List[ValidationWarning] = []

        # Step 1: gross pay
        gross, earning_breakdown = calc_gross_pay(earning_lines)

        # Step 2: deductions and taxable gross
        pre_tax = round_cents(sum_amounts(d.amount for d in deduction_lines if d.category == "pre_tax"))
        post_tax = round_cents(sum_amounts(d.amount for d in deduction_lines if d.category == "post_tax"))
        taxable = gross - pre_tax
        if taxable < 0:
            warnings.append(ValidationWarning(
                code="pre_tax_exceeds_gross",
                message=f"Pre-tax deductions ({pre_tax}) exceed gross pay ({gross}); taxable gross set to 0",
            ))
            taxable = ZERO

        ytd_wages = ytd.wage_base

        # Step 3: federal
        federal = calc_federal_taxes(taxable, ytd_wages, periods, filing_status, tables.federal)

        unrounded: Dict[str, Decimal] = {
            "gross_pay": sum_amounts(e["unrounded"] for e in earning_breakdown),
            "taxable_gross": taxable,
            "annual_federal_taxable": federal["income"]["annual_taxable"],
            "federal_income": federal["income"]["withheld"],
            "social_security": federal["social_security"]["withheld"],
            "medicare": federal["medicare"]["withheld"],
            "additional_medicare": federal["medicare"]["additional_withheld"],
        }
        tax_values = {
            "federal_income": round_cents(federal["income"]["withheld"]),
            "social_security": round_cents(federal["social_security"]["withheld"]),
            "medicare": round_cents(federal["medicare"]["withheld"]),
        }
        local: Dict[str, Decimal] = {}

        # Step 4: state and local
        if tables.state is not None and state_taxes:
            state = calc_state_taxes(
                taxable, ytd_wages, periods, filing_status, allowances, residency_surcharge, tables.state
            )
            unrounded["annual_state_taxable"] = state["income"]["annual_taxable"]
            unrounded["state_income"] = state["income"]["withheld"]
            tax_values["state_income"] = round_cents(state["income"]["withheld"])
            for key, field in _STATE_CONTRIBUTIONS.items():
                if state[key] is not None:
                    unrounded[field] = state[key]["withheld"]
                    tax_values[field] = round_cents(state[key]["withheld"])
            if state["local"] is not None:
                name = state["local"]["name"]
                unrounded[f"local.{name}"] = state["local"]["withheld"]
                local[name] = round_cents(state["local"]["withheld"])

        taxes = TaxAmounts(**tax_values, local=local)
        total_taxes = taxes.total

        # Step 5: net pay (no floor)
        net = gross - total_taxes - pre_tax - post_tax
        if net < 0:
            warnings.append(ValidationWarning(
                code="negative_net_pay",
                message=f"Taxes and deductions ({gross - net}) exceed gross pay ({gross}); net pay is {net}",
            ))

        for warning in warnings:
            logger.warning(f"{warning.code}: {warning.message}")

        # Step 6: YTD
        ytd_earnings = {canonical_earning_type(k): v for k, v in ytd.earnings.items()}
        for entry in earning_breakdown:
            ytd_earnings[entry["type"]] = ytd_earnings.get(entry["type"], ZERO) + entry["amount"]

        updated_ytd = YTDAccumulators(
            gross_pay=ytd.gross_pay + gross,
            taxable_gross=ytd_wages + taxable,
            net_pay=ytd.net_pay + net,
            taxes=ytd.taxes.plus(taxes),
            pre_tax_deductions=ytd.pre_tax_deductions + pre_tax,
            post_tax_deductions=ytd.post_tax_deductions + post_tax,
            earnings=ytd_earnings,
        )

        earning_amounts = [
            EarningAmount(
                type=entry["type"],
                description=entry["description"],
                rate=entry["rate"],
                hours=entry["hours"],
                amount=entry["amount"],
                ytd_amount=ytd_earnings[entry["type"]],
            )
            for entry in earning_breakdown
        ]

        logger.debug(
            f"period: gross={gross} taxable={taxable} taxes={total_taxes} "
            f"pre_tax={pre_tax} post_tax={post_tax} net={net}"
        )

        return PayPeriodResult(
            gross_pay=gross,
            taxable_gross=taxable,
            earnings=earning_amounts,
            deductions=deduction_lines,
            taxes=taxes,
            total_taxes=total_taxes,
            pre_tax_deductions_total=pre_tax,
            post_tax_deductions_total=post_tax,
            net_pay=net,
            updated_ytd=updated_ytd,
            unrounded=unrounded,
            warnings=warnings,
            pay_frequency=pay_frequency,
            periods_per_year=periods,
            filing_status=filing_status,
            allowances=allowances,
        )


def compute(
    earnings: Iterable[EarningInput],
    deductions: Iterable[DeductionInput],
    ytd_in: YTDInput,
    pay_frequency: str,
    filing_status: str,
    allowances: int,
    residency_surcharge: bool,
    tax_tables: Union[TaxTableSet, Dict[str, Any]],
    state_taxes: bool = True,
) -> PayPeriodResult:
    """Compute one pay period (functional form of PayrollEngine.compute)."""
    return PayrollEngine(tax_tables).compute(
        earnings,
        deductions,
        ytd_in=ytd_in,
        pay_frequency=pay_frequency,
        filing_status=filing_status,
        allowances=allowances,
        residency_surcharge=residency_surcharge,
        state_taxes=state_taxes,
    )
