"""Paystub SDK - payroll tax engine for pay stub generation."""

from .config import (
    get_config_dir,
    get_settings_path,
    load_settings,
    save_settings,
    get_setting,
    set_setting,
    find_tax_rules_file,
    get_available_tax_years,
)

from .errors import ConfigurationError, InputError

from .schemas import (
    EarningLine,
    DeductionLine,
    TaxAmounts,
    YTDAccumulators,
    EarningAmount,
    ValidationWarning,
    PayPeriodResult,
)

from .taxes import (
    TaxTableSet,
    TaxTableSource,
    load_tax_tables,
    load_tax_tables_file,
    parse_tax_tables,
    bracketed_tax,
    get_pay_periods,
)

from .earnings import salary_earning

from .engine import PayrollEngine, compute, validate_inputs

from .series import (
    StubPeriod,
    generate_series,
    generate_pay_dates,
    get_period_dates,
)

from .solver import solve_gross_for_net

from .summary import StubSummary, build_stub_summary, result_to_display

__all__ = [
    # Config
    "get_config_dir",
    "get_settings_path",
    "load_settings",
    "save_settings",
    "get_setting",
    "set_setting",
    "find_tax_rules_file",
    "get_available_tax_years",
    # Errors
    "ConfigurationError",
    "InputError",
    # Schemas
    "EarningLine",
    "DeductionLine",
    "TaxAmounts",
    "YTDAccumulators",
    "EarningAmount",
    "ValidationWarning",
    "PayPeriodResult",
    # Tax tables
    "TaxTableSet",
    "TaxTableSource",
    "load_tax_tables",
    "load_tax_tables_file",
    "parse_tax_tables",
    "bracketed_tax",
    "get_pay_periods",
    # Earnings
    "salary_earning",
    # Engine
    "PayrollEngine",
    "compute",
    "validate_inputs",
    # Series
    "StubPeriod",
    "generate_series",
    "generate_pay_dates",
    "get_period_dates",
    # Solver
    "solve_gross_for_net",
    # Boundary shapes
    "StubSummary",
    "build_stub_summary",
    "result_to_display",
]
