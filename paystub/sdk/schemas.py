"""Pydantic schemas for payroll engine inputs and outputs.

All schemas use extra='forbid' to reject unknown fields, ensuring typos in
input files cause clear errors rather than silent ignoring. Money fields
are Decimal; floats are converted through str() on the way in.

Outputs (PayPeriodResult, YTDAccumulators) are frozen: each calculation
produces a new snapshot and never mutates its inputs.
"""

import re
from decimal import Decimal
from typing import Annotated, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .money import Money, ZERO, sum_amounts

NonNegativeMoney = Annotated[Money, Field(ge=0)]


# =============================================================================
# Inputs
# =============================================================================


class EarningLine(BaseModel):
    """One earning on the stub.

    For Regular, Overtime and DoubleTime, amount = rate x multiplier x hours.
    For Salary, Bonus and any other type, rate is the flat amount and hours
    is informational only.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: str = Field(..., min_length=1, description="Regular, Overtime, DoubleTime, Salary, Bonus, or other")
    rate: Money = Field(default=ZERO, description="Hourly rate, or flat amount for non-hourly types")
    hours: Money = Field(default=ZERO, description="Hours worked (hourly types)")
    description: Optional[str] = Field(default=None, description="Label shown on the stub")


DeductionCategory = Literal["pre_tax", "post_tax"]


class DeductionLine(BaseModel):
    """A withheld amount other than tax."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    description: str = Field(default="", description="e.g. 'Health Insurance', '401(k)'")
    amount: Money = Field(..., description="Amount for the period")
    category: DeductionCategory = Field(
        ..., description="pre_tax reduces taxable gross; post_tax comes out of net only"
    )

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v):
        """Accept 'PreTax', 'pre-tax', 'pretax', 'Post Tax' and the like."""
        if isinstance(v, str):
            key = re.sub(r"[^a-z]", "", v.lower())
            if key == "pretax":
                return "pre_tax"
            if key in ("posttax", "aftertax"):
                return "post_tax"
        return v


# =============================================================================
# Shared amounts
# =============================================================================


TAX_FIELDS = (
    "federal_income",
    "social_security",
    "medicare",
    "state_income",
    "state_disability",
    "state_family_leave",
    "state_unemployment",
)


class TaxAmounts(BaseModel):
    """Amounts per tax type for one period or year-to-date."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    federal_income: NonNegativeMoney = ZERO
    social_security: NonNegativeMoney = ZERO
    medicare: NonNegativeMoney = ZERO
    state_income: NonNegativeMoney = ZERO
    state_disability: NonNegativeMoney = ZERO
    state_family_leave: NonNegativeMoney = ZERO
    state_unemployment: NonNegativeMoney = ZERO
    local: Dict[str, NonNegativeMoney] = Field(default_factory=dict, description="Local taxes by name")

    @property
    def total(self) -> Decimal:
        """Total of all taxes."""
        fixed = sum_amounts(getattr(self, name) for name in TAX_FIELDS)
        return fixed + sum_amounts(self.local.values())

    def plus(self, other: "TaxAmounts") -> "TaxAmounts":
        """Field-wise sum; local taxes are matched by name."""
        local = dict(self.local)
        for name, amount in other.local.items():
            local[name] = local.get(name, ZERO) + amount
        values = {name: getattr(self, name) + getattr(other, name) for name in TAX_FIELDS}
        return TaxAmounts(**values, local=local)


class YTDAccumulators(BaseModel):
    """Per-employee year-to-date totals carried between pay periods.

    YTDAccumulators() is the zero snapshot for a new employee. The engine
    never stores these; callers persist each result's updated_ytd and pass
    it to the next period, in pay-period order.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    gross_pay: NonNegativeMoney = ZERO
    taxable_gross: Optional[NonNegativeMoney] = Field(
        default=None,
        description="YTD gross minus pre-tax deductions. If omitted, gross_pay is used as the wage base.",
    )
    net_pay: Money = Field(default=ZERO, description="May be negative when deductions exceeded gross")
    taxes: TaxAmounts = Field(default_factory=TaxAmounts)
    pre_tax_deductions: NonNegativeMoney = ZERO
    post_tax_deductions: NonNegativeMoney = ZERO
    earnings: Dict[str, NonNegativeMoney] = Field(default_factory=dict, description="YTD amount per earning type")

    @property
    def wage_base(self) -> Decimal:
        """Wages already subject to capped contributions this year."""
        return self.taxable_gross if self.taxable_gross is not None else self.gross_pay


# =============================================================================
# Outputs
# =============================================================================


class EarningAmount(BaseModel):
    """Computed earning line with its YTD total."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    type: str = Field(..., description="Canonical earning type")
    description: str
    rate: Decimal
    hours: Decimal
    amount: Decimal = Field(..., description="Current period amount")
    ytd_amount: Decimal = Field(default=ZERO, description="YTD for this earning type after this period")


class ValidationWarning(BaseModel):
    """Non-fatal condition found while computing a period.

    Codes:
        pre_tax_exceeds_gross: taxable gross clamped to zero
        negative_net_pay: withholding and deductions exceed gross
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    code: str
    message: str


class PayPeriodResult(BaseModel):
    """Current-period breakdown and the updated YTD snapshot.

    Monetary fields are rounded to cents; they are what the stub shows and
    what YTD accumulates. `unrounded` holds full-precision values for audit.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    gross_pay: Decimal
    taxable_gross: Decimal
    earnings: List[EarningAmount]
    deductions: List[DeductionLine]
    taxes: TaxAmounts
    total_taxes: Decimal
    pre_tax_deductions_total: Decimal
    post_tax_deductions_total: Decimal
    net_pay: Decimal
    updated_ytd: YTDAccumulators
    unrounded: Dict[str, Decimal] = Field(default_factory=dict)
    warnings: List[ValidationWarning] = Field(default_factory=list)

    pay_frequency: str
    periods_per_year: int
    filing_status: str
    allowances: int = 0

    @property
    def total_deductions(self) -> Decimal:
        """Taxes plus pre-tax and post-tax deductions."""
        return self.total_taxes + self.pre_tax_deductions_total + self.post_tax_deductions_total

    def has_warning(self, code: str) -> bool:
        return any(w.code == code for w in self.warnings)
