"""taxes - Tax tables and withholding logic.

Scope:
- Federal and state bracket tables, standard deductions, wage caps
- Per-period withholding (income tax, SS, Medicare, SDI/FLI/UI, local)
- Tax table loading from tax-rules/{year}.yaml

Constraints:
- Pure calculation - no employee or pay input handling (that's in engine)
- Tables are injected read-only; nothing here caches or fetches on its own
  except TaxTableSource, which exists for callers that want fetch-once

Usage:
    from paystub.sdk.taxes import load_tax_tables, bracketed_tax

    tables = load_tax_tables(2025)
    annual = bracketed_tax(Decimal("50000"), tables.federal.brackets["single"])
"""

from .brackets import bracketed_tax, marginal_rate
from .schemas import (
    TaxBracket,
    CappedContribution,
    MedicareRules,
    LocalSurcharge,
    FederalTables,
    StateTables,
    TaxTableSet,
    normalize_filing_status,
)
from .tables import (
    DEFAULT_TAX_YEAR,
    TaxTableSource,
    load_tax_tables,
    load_tax_tables_file,
    parse_tax_tables,
)
from .withholding import (
    PAY_PERIODS,
    get_pay_periods,
    calc_income_tax_per_period,
    calc_capped_contribution,
    calc_medicare_withholding,
    calc_local_surcharge,
    calc_federal_taxes,
    calc_state_taxes,
)

__all__ = [
    # Brackets
    "bracketed_tax",
    "marginal_rate",
    # Schemas
    "TaxBracket",
    "CappedContribution",
    "MedicareRules",
    "LocalSurcharge",
    "FederalTables",
    "StateTables",
    "TaxTableSet",
    "normalize_filing_status",
    # Loading
    "DEFAULT_TAX_YEAR",
    "TaxTableSource",
    "load_tax_tables",
    "load_tax_tables_file",
    "parse_tax_tables",
    # Withholding
    "PAY_PERIODS",
    "get_pay_periods",
    "calc_income_tax_per_period",
    "calc_capped_contribution",
    "calc_medicare_withholding",
    "calc_local_surcharge",
    "calc_federal_taxes",
    "calc_state_taxes",
]
