"""Boundary shapes for the rendering and delivery collaborators.

The preview renderer wants plain numbers already rounded to cents; the
payment/notification backend needs only a stub summary (employee, company,
pay date, net pay). Neither renders nor sends anything here.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from .schemas import PayPeriodResult, TAX_FIELDS
from .series import parse_date


class StubSummary(BaseModel):
    """What the payment/notification backend receives for one stub."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    employee_name: str = Field(..., min_length=1)
    company_name: str = Field(..., min_length=1)
    pay_date: date
    gross_pay: Decimal
    total_taxes: Decimal
    total_deductions: Decimal
    net_pay: Decimal

    @field_serializer("gross_pay", "total_taxes", "total_deductions", "net_pay")
    def serialize_money(self, v: Decimal) -> float:
        return float(v)


def build_stub_summary(
    result: PayPeriodResult,
    employee_name: str,
    company_name: str,
    pay_date: Union[str, date],
) -> StubSummary:
    """Build the delivery summary for a computed stub."""
    return StubSummary(
        employee_name=employee_name,
        company_name=company_name,
        pay_date=parse_date(pay_date),
        gross_pay=result.gross_pay,
        total_taxes=result.total_taxes,
        total_deductions=result.total_deductions,
        net_pay=result.net_pay,
    )


def _num(value: Decimal) -> float:
    return float(value)


def result_to_display(result: PayPeriodResult) -> Dict[str, Any]:
    """Flatten a result into plain numbers for display.

    Current amounts and YTD are rounded cents as floats. The unrounded audit
    values are kept as strings so no precision is lost.
    """
    ytd = result.updated_ytd
    taxes = {name: _num(getattr(result.taxes, name)) for name in TAX_FIELDS}
    taxes.update({f"local.{name}": _num(v) for name, v in result.taxes.local.items()})
    ytd_taxes = {name: _num(getattr(ytd.taxes, name)) for name in TAX_FIELDS}
    ytd_taxes.update({f"local.{name}": _num(v) for name, v in ytd.taxes.local.items()})

    return {
        "pay_frequency": result.pay_frequency,
        "filing_status": result.filing_status,
        "earnings": [
            {
                "type": e.type,
                "description": e.description,
                "rate": _num(e.rate),
                "hours": _num(e.hours),
                "amount": _num(e.amount),
                "ytd_amount": _num(e.ytd_amount),
            }
            for e in result.earnings
        ],
        "deductions": [
            {"description": d.description, "category": d.category, "amount": _num(d.amount)}
            for d in result.deductions
        ],
        "current": {
            "gross_pay": _num(result.gross_pay),
            "taxable_gross": _num(result.taxable_gross),
            "taxes": taxes,
            "total_taxes": _num(result.total_taxes),
            "pre_tax_deductions": _num(result.pre_tax_deductions_total),
            "post_tax_deductions": _num(result.post_tax_deductions_total),
            "total_deductions": _num(result.total_deductions),
            "net_pay": _num(result.net_pay),
        },
        "ytd": {
            "gross_pay": _num(ytd.gross_pay),
            "taxable_gross": _num(ytd.wage_base),
            "taxes": ytd_taxes,
            "total_taxes": _num(ytd.taxes.total),
            "pre_tax_deductions": _num(ytd.pre_tax_deductions),
            "post_tax_deductions": _num(ytd.post_tax_deductions),
            "net_pay": _num(ytd.net_pay),
        },
        "unrounded": {k: str(v) for k, v in result.unrounded.items()},
        "warnings": [w.model_dump() for w in result.warnings],
    }
