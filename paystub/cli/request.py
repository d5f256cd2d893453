"""Pay input files for the CLI.

A request file is YAML or JSON (JSON is valid YAML) describing one pay
period's inputs:

    pay_frequency: Weekly
    filing_status: Single
    allowances: 0
    residency_surcharge: false
    state_taxes: true
    tax_year: 2025
    pay_date: 2025-01-03
    employee_name: Jane Doe
    company_name: Acme LLC
    earnings:
      - {type: Regular, rate: 20, hours: 40}
    annual_salary: 52000      # optional; adds a Salary line of 52000 / periods
    deductions:
      - {description: 401k, amount: 50, category: pre_tax}
    ytd:
      gross_pay: 1000

Earning, deduction and YTD entries are passed through untouched so the
engine reports their field errors; only the file's top-level shape is
checked here.
"""

from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from paystub.sdk import salary_earning


class StubRequest(BaseModel):
    """Top-level shape of a pay input file."""

    model_config = ConfigDict(extra="forbid")

    earnings: List[Dict[str, Any]] = Field(default_factory=list)
    annual_salary: Any = None
    deductions: List[Dict[str, Any]] = Field(default_factory=list)
    ytd: Optional[Dict[str, Any]] = None
    pay_frequency: str = "Bi-Weekly"
    filing_status: str = "Single"
    allowances: Any = 0
    residency_surcharge: bool = False
    state_taxes: bool = True
    tax_year: Optional[int] = None
    pay_date: Optional[date] = None
    employee_name: Optional[str] = None
    company_name: Optional[str] = None

    def earning_lines(self) -> List[Any]:
        """Earning lines plus the per-period Salary line for annual_salary, if set.

        Raises:
            InputError: If annual_salary is not a non-negative number
            ConfigurationError: If pay_frequency is unknown
        """
        lines: List[Any] = list(self.earnings)
        if self.annual_salary is not None:
            lines.append(salary_earning(self.annual_salary, self.pay_frequency))
        return lines

    def engine_kwargs(self) -> Dict[str, Any]:
        """Filing configuration shared by every engine entry point."""
        return {
            "ytd_in": self.ytd,
            "pay_frequency": self.pay_frequency,
            "filing_status": self.filing_status,
            "allowances": self.allowances,
            "residency_surcharge": self.residency_surcharge,
            "state_taxes": self.state_taxes,
        }


def load_request(path: Path) -> StubRequest:
    """Read and validate a pay input file.

    Raises:
        click.ClickException: If the file is not valid YAML/JSON or has the wrong shape
    """
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise click.ClickException(f"Could not parse {path}: {e}")

    if not isinstance(data, dict):
        raise click.ClickException(f"{path} must contain a mapping of pay inputs")

    try:
        return StubRequest.model_validate(data)
    except ValidationError as e:
        problems = "\n".join(
            f"  {'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise click.ClickException(f"Invalid pay inputs in {path}:\n{problems}")
