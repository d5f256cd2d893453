"""Net-to-gross solver.

Finds the flat per-period gross that produces a desired net pay under the
same filing configuration, deductions and YTD. No marginal rate reaches
100%, so net pay rises with gross up to cent rounding: each tax is rounded
separately, and a one-cent raise can cost a cent of net. Bisection finds the
boundary and a final downward scan settles the rounding.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable

from .engine import DeductionInput, PayrollEngine, YTDInput
from .errors import InputError
from .money import CENT, round_cents, to_decimal

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 100


def solve_gross_for_net(
    engine: PayrollEngine,
    desired_net: Any,
    deductions: Iterable[DeductionInput] = (),
    ytd_in: YTDInput = None,
    pay_frequency: str = "Bi-Weekly",
    filing_status: str = "Single",
    allowances: int = 0,
    residency_surcharge: bool = False,
    state_taxes: bool = True,
    earning_type: str = "Salary",
) -> Dict[str, Any]:
    """Solve for the gross pay that yields `desired_net`.

    Args:
        engine: Engine with loaded tax tables
        desired_net: Target net pay for the period
        earning_type: Flat earning type used to carry the solved gross

    Returns:
        Dict with:
            - gross: Cent amount whose net pay is >= desired_net while one
              cent less falls short (0 if zero gross already reaches it)
            - net: Net pay at that gross
            - iterations: Bisection steps taken
            - result: PayPeriodResult at that gross

    Raises:
        InputError: If desired_net is negative or not a number
    """
    try:
        target = to_decimal(desired_net)
    except ValueError as e:
        raise InputError({"desired_net": str(e)}) from None
    if target < 0:
        raise InputError({"desired_net": f"must not be negative (got {target})"})

    deductions = list(deductions)

    def net_at(gross: Decimal):
        return engine.compute(
            [{"type": earning_type, "rate": gross}],
            deductions,
            ytd_in=ytd_in,
            pay_frequency=pay_frequency,
            filing_status=filing_status,
            allowances=allowances,
            residency_surcharge=residency_surcharge,
            state_taxes=state_taxes,
        )

    low = Decimal("0")
    at_zero = net_at(low)
    if at_zero.net_pay >= target:
        logger.debug(f"net-to-gross: target={target} reached at zero gross")
        return {"gross": low, "net": at_zero.net_pay, "iterations": 0, "result": at_zero}

    high = max(round_cents(target * 2), CENT)
    iterations = 0
    while net_at(high).net_pay < target:
        low = high
        high *= 2
        iterations += 1
        if iterations >= MAX_ITERATIONS:
            raise InputError({"desired_net": f"no gross found for net pay {target}"})

    # Invariant: net(low) < target <= net(high)
    while high - low > CENT and iterations < MAX_ITERATIONS:
        mid = round_cents((low + high) / 2)
        if mid in (low, high):
            break
        if net_at(mid).net_pay >= target:
            high = mid
        else:
            low = mid
        iterations += 1

    # Rounding can leave a cheaper gross just below high that still reaches the target
    while high - CENT > low and net_at(high - CENT).net_pay >= target:
        high -= CENT
        iterations += 1

    result = net_at(high)
    logger.debug(f"net-to-gross: target={target} gross={high} net={result.net_pay} iterations={iterations}")
    return {
        "gross": high,
        "net": result.net_pay,
        "iterations": iterations,
        "result": result,
    }
