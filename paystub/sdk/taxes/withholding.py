"""Per-period withholding calculations.

Implements the annualize -> bracket lookup -> de-annualize pattern for
income tax, and the YTD-aware capped contribution logic shared by Social
Security and the state disability, family leave and unemployment funds.

Every function returns unrounded Decimals; rounding to cents happens once,
in the engine, when the stub amounts are assembled.
"""

import logging
import re
from decimal import Decimal
from typing import Any, Dict, Optional

from ..errors import ConfigurationError
from ..money import ZERO
from .brackets import bracketed_tax, marginal_rate
from .schemas import (
    BracketTable,
    CappedContribution,
    FederalTables,
    LocalSurcharge,
    MedicareRules,
    StateTables,
    normalize_filing_status,
)

logger = logging.getLogger(__name__)


# Pay periods by frequency
PAY_PERIODS = {
    "weekly": 52,
    "biweekly": 26,
    "semimonthly": 24,
    "monthly": 12,
}


def get_pay_periods(frequency: str) -> int:
    """Get number of pay periods per year for a frequency.

    Accepts 'Weekly', 'Bi-Weekly', 'semi_monthly', 'monthly' and similar
    spellings.

    Raises:
        ConfigurationError: If the frequency is not one of the four known ones
    """
    key = re.sub(r"[^a-z]", "", str(frequency).lower())
    if key not in PAY_PERIODS:
        raise ConfigurationError(
            f"Unknown pay frequency '{frequency}'. "
            f"Expected one of: Weekly, Bi-Weekly, Semi-Monthly, Monthly"
        )
    return PAY_PERIODS[key]


def calc_income_tax_per_period(
    taxable_per_period: Decimal,
    periods: int,
    brackets: BracketTable,
    annual_deduction: Decimal = ZERO,
) -> Dict[str, Decimal]:
    """Calculate income tax withholding for one period.

    Annualizes taxable wages, subtracts the annual deduction (floored at
    zero), runs the bracket table, and divides by the number of periods.

    Args:
        taxable_per_period: Taxable wages for the period (after pre-tax deductions)
        periods: Pay periods per year
        brackets: Bracket table for the filing status
        annual_deduction: Standard deduction plus any allowance deductions

    Returns:
        Dict with:
            - annual_wages: Annualized taxable wages
            - annual_taxable: Annual income subject to brackets
            - annual_tax: Tax on annual_taxable
            - marginal_rate: Rate of the bracket the income ends in
            - withheld: Per-period withholding (unrounded)
    """
    annual_wages = taxable_per_period * periods
    annual_taxable = max(ZERO, annual_wages - annual_deduction)
    annual_tax = bracketed_tax(annual_taxable, brackets)

    return {
        "annual_wages": annual_wages,
        "annual_taxable": annual_taxable,
        "annual_tax": annual_tax,
        "marginal_rate": marginal_rate(annual_taxable, brackets),
        "withheld": annual_tax / periods,
    }


def calc_capped_contribution(
    wages: Decimal,
    ytd_wages: Decimal,
    rules: CappedContribution,
) -> Dict[str, Any]:
    """Calculate a flat-rate contribution subject to an annual wage cap.

    Only the part of this period's wages that falls below the cap, given the
    wages already taxed this year, is subject to the rate. Once YTD wages
    reach the cap the contribution is zero.

    Args:
        wages: Taxable wages for the period
        ytd_wages: Year-to-date wages before this period
        rules: Rate and wage cap

    Returns:
        Dict with:
            - taxable: Wages subject to the rate this period
            - withheld: Contribution (unrounded)
            - rate: Rate used
            - capped: Whether the wage cap was reached
            - wage_cap: Cap used (None if uncapped)
    """
    if rules.wage_cap is None:
        taxable = wages
        capped = False
    else:
        remaining_cap = max(ZERO, rules.wage_cap - ytd_wages)
        taxable = min(wages, remaining_cap)
        capped = ytd_wages + wages >= rules.wage_cap

    return {
        "taxable": taxable,
        "withheld": taxable * rules.rate,
        "rate": rules.rate,
        "capped": capped,
        "wage_cap": rules.wage_cap,
    }


def calc_medicare_withholding(
    wages: Decimal,
    ytd_wages: Decimal,
    rules: MedicareRules,
) -> Dict[str, Any]:
    """Calculate Medicare withholding for a period.

    The base rate applies to all wages. The additional rate applies only to
    wages above the threshold: when this period crosses the threshold, only
    the slice newly over it is taxed; once YTD is over it, all wages are.
    With no threshold configured there is no additional tax.

    Returns:
        Dict with:
            - taxable: Medicare wages (always equals wages)
            - base_withheld: Base Medicare tax
            - additional_wages: Wages subject to the additional rate
            - additional_withheld: Additional Medicare tax
            - withheld: Total Medicare withheld (unrounded)
            - over_threshold: Whether YTD now exceeds the threshold
    """
    threshold = rules.additional_rate_threshold
    base_withheld = wages * rules.rate

    new_ytd = ytd_wages + wages
    if threshold is None:
        additional_wages = ZERO
    else:
        additional_wages = max(ZERO, new_ytd - max(threshold, ytd_wages))
    additional_withheld = additional_wages * rules.additional_rate

    return {
        "taxable": wages,
        "base_withheld": base_withheld,
        "additional_wages": additional_wages,
        "additional_withheld": additional_withheld,
        "withheld": base_withheld + additional_withheld,
        "over_threshold": threshold is not None and new_ytd > threshold,
        "threshold": threshold,
    }


def calc_local_surcharge(wages: Decimal, rules: LocalSurcharge) -> Dict[str, Any]:
    """Flat resident surcharge on taxable wages; no cap."""
    return {
        "name": rules.name,
        "taxable": wages,
        "withheld": wages * rules.rate,
        "rate": rules.rate,
    }


def resolve_federal_brackets(tables: FederalTables, filing_status: str) -> BracketTable:
    """Federal bracket table for a filing status. No fallback.

    Raises:
        ConfigurationError: If the status has no federal table
    """
    key = normalize_filing_status(filing_status)
    if key not in tables.brackets:
        raise ConfigurationError(
            f"No federal tax brackets for filing status '{filing_status}'. "
            f"Available: {', '.join(sorted(tables.brackets))}"
        )
    return tables.brackets[key]


def resolve_federal_standard_deduction(tables: FederalTables, filing_status: str) -> Decimal:
    """Federal standard deduction for a filing status. No fallback.

    Raises:
        ConfigurationError: If the status has no standard deduction
    """
    key = normalize_filing_status(filing_status)
    if key not in tables.standard_deductions:
        raise ConfigurationError(
            f"No federal standard deduction for filing status '{filing_status}'"
        )
    return tables.standard_deductions[key]


def resolve_state_brackets(tables: StateTables, filing_status: str) -> BracketTable:
    """State bracket table for a filing status.

    Falls back to the state's declared default_status table when the
    requested status has no table of its own.

    Raises:
        ConfigurationError: If neither the status nor a default_status table exists
    """
    key = normalize_filing_status(filing_status)
    if key in tables.brackets:
        return tables.brackets[key]
    if tables.default_status is not None:
        logger.info(
            f"{tables.name}: no brackets for '{filing_status}', "
            f"using default status '{tables.default_status}'"
        )
        return tables.brackets[tables.default_status]
    raise ConfigurationError(
        f"No {tables.name} tax brackets for filing status '{filing_status}' "
        f"and no default_status configured"
    )


def calc_federal_taxes(
    taxable_gross: Decimal,
    ytd_wages: Decimal,
    periods: int,
    filing_status: str,
    tables: FederalTables,
) -> Dict[str, Dict[str, Any]]:
    """Calculate federal income tax, Social Security and Medicare for a period.

    Args:
        taxable_gross: Gross minus pre-tax deductions for the period
        ytd_wages: Year-to-date taxable wages before this period
        periods: Pay periods per year
        filing_status: Federal filing status
        tables: Federal tables

    Returns:
        Dict with 'income', 'social_security' and 'medicare' breakdowns
    """
    brackets = resolve_federal_brackets(tables, filing_status)
    standard_deduction = resolve_federal_standard_deduction(tables, filing_status)

    income = calc_income_tax_per_period(taxable_gross, periods, brackets, standard_deduction)
    ss = calc_capped_contribution(taxable_gross, ytd_wages, tables.social_security)
    medicare = calc_medicare_withholding(taxable_gross, ytd_wages, tables.medicare)

    logger.debug(
        f"federal: annual_taxable={income['annual_taxable']} annual_tax={income['annual_tax']} "
        f"ss_taxable={ss['taxable']} medicare_additional_wages={medicare['additional_wages']}"
    )
    if ss["capped"]:
        logger.debug(f"social security wage cap {ss['wage_cap']} reached")

    return {"income": income, "social_security": ss, "medicare": medicare}


def calc_state_taxes(
    taxable_gross: Decimal,
    ytd_wages: Decimal,
    periods: int,
    filing_status: str,
    allowances: int,
    residency_surcharge: bool,
    tables: StateTables,
) -> Dict[str, Optional[Dict[str, Any]]]:
    """Calculate state income tax, capped state contributions and local surcharge.

    State income tax follows the federal pattern; the annual deduction is the
    state standard deduction for the status (if any) plus allowances times
    the per-allowance deduction.

    Returns:
        Dict with 'income', 'disability', 'family_leave', 'unemployment'
        and 'local' breakdowns (None where the state does not levy it)

    Raises:
        ConfigurationError: If residency_surcharge is set but no local
            surcharge is configured
    """
    brackets = resolve_state_brackets(tables, filing_status)
    status_key = normalize_filing_status(filing_status)
    annual_deduction = (
        tables.standard_deductions.get(status_key, ZERO)
        + tables.per_allowance_deduction * allowances
    )
    income = calc_income_tax_per_period(taxable_gross, periods, brackets, annual_deduction)

    result: Dict[str, Optional[Dict[str, Any]]] = {"income": income}
    for field in ("disability", "family_leave", "unemployment"):
        rules = getattr(tables, field)
        result[field] = (
            calc_capped_contribution(taxable_gross, ytd_wages, rules) if rules is not None else None
        )

    if residency_surcharge:
        if tables.local_surcharge is None:
            raise ConfigurationError(
                f"Residency surcharge requested but no local surcharge is configured for {tables.name}"
            )
        result["local"] = calc_local_surcharge(taxable_gross, tables.local_surcharge)
    else:
        result["local"] = None

    logger.debug(
        f"{tables.name}: annual_taxable={income['annual_taxable']} annual_tax={income['annual_tax']}"
    )
    return result
