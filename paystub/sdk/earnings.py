"""Earning line amounts and gross pay."""

import re
from decimal import Decimal
from typing import Dict, List, Tuple

from .errors import InputError
from .money import round_cents, sum_amounts, to_decimal
from .schemas import EarningLine
from .taxes.withholding import get_pay_periods

# Canonical earning types and their hourly multipliers. Types mapped to None
# are flat amounts (rate is the amount).
EARNING_TYPES: Dict[str, Tuple[str, object]] = {
    "regular": ("Regular", Decimal("1")),
    "overtime": ("Overtime", Decimal("1.5")),
    "doubletime": ("DoubleTime", Decimal("2")),
    "salary": ("Salary", None),
    "bonus": ("Bonus", None),
}

_ALIASES = {
    "reg": "regular",
    "regularpay": "regular",
    "hourly": "regular",
    "ot": "overtime",
    "dt": "doubletime",
}


def _type_key(earning_type: str) -> str:
    key = re.sub(r"[^a-z]", "", earning_type.lower())
    return _ALIASES.get(key, key)


def canonical_earning_type(earning_type: str) -> str:
    """Canonical name for an earning type.

    Known types match case-insensitively, ignoring spaces, hyphens and
    underscores ('double_time' -> 'DoubleTime'). Unrecognized types keep
    their name as given, stripped.
    """
    key = _type_key(earning_type)
    if key in EARNING_TYPES:
        return EARNING_TYPES[key][0]
    return earning_type.strip()


def hourly_multiplier(earning_type: str):
    """Multiplier on rate x hours, or None for flat-amount types.

    Unrecognized types are flat amounts.
    """
    key = _type_key(earning_type)
    if key in EARNING_TYPES:
        return EARNING_TYPES[key][1]
    return None


def earning_amount(line: EarningLine) -> Decimal:
    """Unrounded amount for one earning line.

    Regular: rate x hours
    Overtime: rate x 1.5 x hours
    DoubleTime: rate x 2 x hours
    Salary, Bonus, anything else: rate
    """
    multiplier = hourly_multiplier(line.type)
    if multiplier is None:
        return line.rate
    return line.rate * multiplier * line.hours


def calc_gross_pay(lines: List[EarningLine]) -> Tuple[Decimal, List[Dict[str, object]]]:
    """Compute gross pay and the per-line breakdown.

    Each line is rounded to cents, and gross is the sum of the rounded lines
    so the stub's earnings column adds up to gross.

    Returns:
        Tuple of (gross_pay, breakdown) where each breakdown entry has
        type, description, rate, hours, amount, and unrounded amount
    """
    breakdown = []
    for line in lines:
        raw = earning_amount(line)
        canonical = canonical_earning_type(line.type)
        breakdown.append({
            "type": canonical,
            "description": line.description or canonical,
            "rate": line.rate,
            "hours": line.hours,
            "amount": round_cents(raw),
            "unrounded": raw,
        })
    gross = sum_amounts(entry["amount"] for entry in breakdown)
    return gross, breakdown


def salary_earning(annual_salary, pay_frequency: str) -> EarningLine:
    """Salary line for one period: annual salary over pay periods per year.

    Example: 41600 weekly -> Salary 800.00

    Raises:
        InputError: If annual_salary is not a number or is negative
        ConfigurationError: If the pay frequency is unknown
    """
    try:
        annual = to_decimal(annual_salary)
    except ValueError as e:
        raise InputError({"annual_salary": str(e)}) from None
    if annual < 0:
        raise InputError({"annual_salary": f"must not be negative (got {annual})"})
    return EarningLine(type="Salary", rate=round_cents(annual / get_pay_periods(pay_frequency)))
