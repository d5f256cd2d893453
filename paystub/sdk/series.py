"""Consecutive pay stub generation.

Produces a batch of stubs for the same employee and pay inputs, one per pay
date, threading YTD from each period into the next in pay-date order.
"""

import calendar
import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List, Tuple, Union

from pydantic import BaseModel, ConfigDict

from .engine import DeductionInput, EarningInput, PayrollEngine, YTDInput
from .errors import InputError
from .schemas import PayPeriodResult, YTDAccumulators
from .taxes.withholding import get_pay_periods

logger = logging.getLogger(__name__)


class StubPeriod(BaseModel):
    """One stub in a series: its dates and computed result."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    index: int
    pay_date: date
    period_start: date
    period_end: date
    result: PayPeriodResult


def parse_date(date_str: Union[str, date]) -> date:
    """Parse a date string in YYYY-MM-DD format."""
    if isinstance(date_str, date):
        return date_str
    return datetime.strptime(date_str, "%Y-%m-%d").date()


def _month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def _add_months(d: date, months: int = 1) -> date:
    """Same day `months` later, clamped to the month's length."""
    year, month = divmod(d.month - 1 + months, 12)
    year += d.year
    month += 1
    return date(year, month, min(d.day, calendar.monthrange(year, month)[1]))


def next_pay_date(current: date, frequency: str) -> date:
    """Pay date following `current` for a frequency.

    Weekly and bi-weekly step 7 or 14 days. Semi-monthly pays on the 15th
    and the last day of the month. Monthly steps one calendar month.
    """
    periods = get_pay_periods(frequency)
    if periods == 52:
        return current + timedelta(days=7)
    if periods == 26:
        return current + timedelta(days=14)
    if periods == 24:
        month_end = _month_end(current.year, current.month)
        if current.day < 15:
            return current.replace(day=15)
        if current < month_end:
            return month_end
        return _add_months(current.replace(day=15))
    return _add_months(current)


def generate_pay_dates(first_pay_date: date, count: int, frequency: str) -> List[date]:
    """Generate `count` pay dates starting at first_pay_date.

    Monthly dates keep the first pay date's day of month where the month
    has it (Jan 31 -> Feb 28 -> Mar 31).
    """
    if get_pay_periods(frequency) == 12:
        return [_add_months(first_pay_date, i) for i in range(count)]

    pay_dates = []
    current = first_pay_date
    for _ in range(count):
        pay_dates.append(current)
        current = next_pay_date(current, frequency)
    return pay_dates


def get_period_dates(pay_date: date, frequency: str) -> Tuple[date, date]:
    """Pay period (start, end) covered by a pay date.

    Weekly: the 7 days ending on the pay date
    Bi-weekly: the 14 days ending on the pay date
    Semi-monthly: paid after the 15th covers the 1st-15th of the month;
        paid on or before the 15th covers the 16th-end of the prior month
    Monthly: the calendar month of the pay date
    """
    periods = get_pay_periods(frequency)
    if periods == 52:
        return pay_date - timedelta(days=6), pay_date
    if periods == 26:
        return pay_date - timedelta(days=13), pay_date
    if periods == 24:
        if pay_date.day > 15:
            return pay_date.replace(day=1), pay_date.replace(day=15)
        prior_month_end = pay_date.replace(day=1) - timedelta(days=1)
        return prior_month_end.replace(day=16), prior_month_end
    return pay_date.replace(day=1), _month_end(pay_date.year, pay_date.month)


def generate_series(
    engine: PayrollEngine,
    first_pay_date: Union[str, date],
    count: int,
    earnings: Iterable[EarningInput],
    deductions: Iterable[DeductionInput] = (),
    ytd_in: YTDInput = None,
    pay_frequency: str = "Bi-Weekly",
    filing_status: str = "Single",
    allowances: int = 0,
    residency_surcharge: bool = False,
    state_taxes: bool = True,
) -> List[StubPeriod]:
    """Compute `count` consecutive stubs with the same pay inputs.

    Each period's updated_ytd is the next period's ytd_in. YTD restarts
    at zero when the series crosses into a new calendar year.

    Raises:
        InputError: If count is less than 1
        ConfigurationError: Propagated from the engine
    """
    if count < 1:
        raise InputError({"count": f"must be at least 1 (got {count})"})

    earnings = list(earnings)
    deductions = list(deductions)
    start = parse_date(first_pay_date)

    stubs = []
    ytd = ytd_in
    for index, pay_date in enumerate(generate_pay_dates(start, count, pay_frequency)):
        if index > 0 and pay_date.year != stubs[-1].pay_date.year:
            logger.info(f"pay date {pay_date} starts tax year {pay_date.year}; YTD reset")
            ytd = YTDAccumulators()
        result = engine.compute(
            earnings,
            deductions,
            ytd_in=ytd,
            pay_frequency=pay_frequency,
            filing_status=filing_status,
            allowances=allowances,
            residency_surcharge=residency_surcharge,
            state_taxes=state_taxes,
        )
        period_start, period_end = get_period_dates(pay_date, pay_frequency)
        stubs.append(StubPeriod(
            index=index,
            pay_date=pay_date,
            period_start=period_start,
            period_end=period_end,
            result=result,
        ))
        ytd = result.updated_ytd

    logger.debug(f"generated {len(stubs)} stubs from {start} ({pay_frequency})")
    return stubs
