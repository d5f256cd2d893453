"""Pydantic schemas for tax table validation.

These schemas validate the tax rules YAML files and provide typed, read-only
access to bracket tables, standard deductions, wage caps and flat rates.
All models are frozen: a loaded TaxTableSet is shared by every computation
in a session and nothing may mutate it.
"""

import re
from decimal import Decimal
from typing import Annotated, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..money import Money

Rate = Annotated[Money, Field(ge=0, le=1)]
NonNegativeMoney = Annotated[Money, Field(ge=0)]

FILING_STATUS_ALIASES = {
    "mfj": "marriedfilingjointly",
    "married": "marriedfilingjointly",
    "mfs": "marriedfilingseparately",
    "hoh": "headofhousehold",
}

_UNBOUNDED = {"inf", "infinity", "+inf", "+infinity"}


def normalize_filing_status(status: str) -> str:
    """Normalize a filing status label to its table key.

    'Single', 'single' -> 'single'
    'MarriedFilingJointly', 'married_filing_jointly', 'MFJ' -> 'marriedfilingjointly'
    """
    key = re.sub(r"[^a-z0-9]", "", str(status).lower())
    return FILING_STATUS_ALIASES.get(key, key)


class TaxBracket(BaseModel):
    """Single tax bracket: income from lower up to upper taxed at rate."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    lower: NonNegativeMoney = Field(..., description="Lower bound of the slice")
    upper: Optional[NonNegativeMoney] = Field(default=None, description="Upper bound (None if unbounded)")
    rate: Rate = Field(..., description="Marginal rate as decimal")

    @field_validator("upper", mode="before")
    @classmethod
    def parse_unbounded(cls, v):
        """Accept null, .inf and 'Infinity' for the open top bracket."""
        if v is None:
            return None
        if isinstance(v, float) and v == float("inf"):
            return None
        if isinstance(v, str) and v.strip().lower() in _UNBOUNDED:
            return None
        return v

    @model_validator(mode="after")
    def check_bounds(self) -> "TaxBracket":
        if self.upper is not None and self.upper <= self.lower:
            raise ValueError(f"bracket upper ({self.upper}) must exceed lower ({self.lower})")
        return self


BracketTable = List[TaxBracket]


def _validate_bracket_tables(tables: Dict[str, BracketTable]) -> Dict[str, BracketTable]:
    """Normalize filing status keys and enforce contiguous, ascending tables."""
    normalized = {}
    for status, brackets in tables.items():
        key = normalize_filing_status(status)
        if key in normalized:
            raise ValueError(f"duplicate bracket table for filing status '{status}'")
        if not brackets:
            raise ValueError(f"bracket table for '{status}' is empty")
        for i in range(1, len(brackets)):
            prev, cur = brackets[i - 1], brackets[i]
            if prev.upper is None:
                raise ValueError(f"'{status}': only the last bracket may be unbounded")
            if cur.lower != prev.upper:
                raise ValueError(
                    f"'{status}': bracket {i} starts at {cur.lower}, "
                    f"expected {prev.upper} (brackets must be contiguous)"
                )
        if brackets[-1].upper is not None:
            raise ValueError(f"'{status}': last bracket must be unbounded")
        normalized[key] = brackets
    return normalized


def _normalize_status_keys(amounts: Dict[str, Decimal]) -> Dict[str, Decimal]:
    return {normalize_filing_status(k): v for k, v in amounts.items()}


class CappedContribution(BaseModel):
    """Flat-rate contribution with an annual wage cap (SS, SDI, FLI, UI)."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    rate: Rate = Field(..., description="Employee rate as decimal")
    wage_cap: Optional[NonNegativeMoney] = Field(
        default=None, description="Annual wage base (None means uncapped)"
    )


class MedicareRules(BaseModel):
    """Medicare: flat rate plus Additional Medicare Tax over a YTD threshold."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    rate: Rate
    additional_rate: Rate = Field(default=Decimal("0"))
    additional_rate_threshold: Optional[NonNegativeMoney] = Field(
        default=None,
        description="YTD wages above which additional_rate applies (per employer); None for no surtax",
    )


class LocalSurcharge(BaseModel):
    """Resident local tax: flat rate on taxable gross, no wage cap."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., min_length=1)
    rate: Rate


class FederalTables(BaseModel):
    """Federal jurisdiction tables."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    brackets: Dict[str, BracketTable]
    standard_deductions: Dict[str, NonNegativeMoney]
    social_security: CappedContribution
    medicare: MedicareRules

    @field_validator("brackets")
    @classmethod
    def check_brackets(cls, v: Dict[str, BracketTable]) -> Dict[str, BracketTable]:
        return _validate_bracket_tables(v)

    @field_validator("standard_deductions")
    @classmethod
    def normalize_deduction_keys(cls, v: Dict[str, Decimal]) -> Dict[str, Decimal]:
        return _normalize_status_keys(v)


class StateTables(BaseModel):
    """State jurisdiction tables.

    default_status names the bracket table used when the requested filing
    status has no table of its own. Leave it unset to make a missing status
    a configuration error.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(..., min_length=1, description="Jurisdiction name (e.g. 'New Jersey')")
    brackets: Dict[str, BracketTable]
    standard_deductions: Dict[str, NonNegativeMoney] = Field(default_factory=dict)
    default_status: Optional[str] = None
    per_allowance_deduction: NonNegativeMoney = Field(default=Decimal("0"))
    disability: Optional[CappedContribution] = None
    family_leave: Optional[CappedContribution] = None
    unemployment: Optional[CappedContribution] = None
    local_surcharge: Optional[LocalSurcharge] = None

    @field_validator("brackets")
    @classmethod
    def check_brackets(cls, v: Dict[str, BracketTable]) -> Dict[str, BracketTable]:
        return _validate_bracket_tables(v)

    @field_validator("standard_deductions")
    @classmethod
    def normalize_deduction_keys(cls, v: Dict[str, Decimal]) -> Dict[str, Decimal]:
        return _normalize_status_keys(v)

    @field_validator("default_status")
    @classmethod
    def normalize_default_status(cls, v: Optional[str]) -> Optional[str]:
        return normalize_filing_status(v) if v is not None else None

    @model_validator(mode="after")
    def check_default_status(self) -> "StateTables":
        if self.default_status is not None and self.default_status not in self.brackets:
            raise ValueError(f"default_status '{self.default_status}' has no bracket table")
        return self


class TaxTableSet(BaseModel):
    """Complete tax tables for a year: federal plus an optional state."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    year: int = Field(..., ge=1900)
    federal: FederalTables
    state: Optional[StateTables] = None
