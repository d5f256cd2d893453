"""Progressive (bracketed) tax calculation.

Shared by federal and state income tax. Each bracket taxes only the slice of
income between its lower and upper bound, so the result is monotonic in
income and continuous at every bracket boundary.
"""

from decimal import Decimal
from typing import Sequence

from ..money import ZERO
from .schemas import TaxBracket


def bracketed_tax(income: Decimal, brackets: Sequence[TaxBracket]) -> Decimal:
    """Calculate tax on annual income using marginal brackets.

    Sums max(0, min(income, upper) - lower) * rate over every bracket whose
    lower bound is below income. Result is unrounded.

    Args:
        income: Annual taxable income (negative is treated as zero)
        brackets: Contiguous ascending brackets, last one unbounded

    Returns:
        Annual tax as an unrounded Decimal
    """
    tax = ZERO
    for bracket in brackets:
        if income <= bracket.lower:
            break
        top = income if bracket.upper is None else min(income, bracket.upper)
        slice_amount = top - bracket.lower
        if slice_amount > 0:
            tax += slice_amount * bracket.rate
    return tax


def marginal_rate(income: Decimal, brackets: Sequence[TaxBracket]) -> Decimal:
    """Rate of the bracket containing the next dollar of income."""
    rate = ZERO
    for bracket in brackets:
        if income < bracket.lower:
            break
        rate = bracket.rate
    return rate
