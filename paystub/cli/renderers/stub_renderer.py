"""Rich renderer for computed pay stubs.

Transforms result_to_display() output into formatted Rich tables.
"""

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

TAX_LABELS = {
    "federal_income": "Federal Income Tax",
    "social_security": "Social Security",
    "medicare": "Medicare",
    "state_income": "State Income Tax",
    "state_disability": "State Disability (SDI)",
    "state_family_leave": "Family Leave (FLI)",
    "state_unemployment": "Unemployment (UI/WF)",
}


def render_stub(console: Console, data: dict, title: str = "Pay Stub") -> None:
    """Render one computed stub.

    Args:
        console: Rich Console instance
        data: Output of result_to_display()
        title: Table title
    """
    for warning in data.get("warnings", []):
        console.print(Panel(
            f"[yellow]{warning['message']}[/yellow]",
            title=warning["code"],
            border_style="yellow",
        ))

    current = data["current"]
    ytd = data["ytd"]

    table = Table(title=title, box=box.ROUNDED)
    table.add_column("", style="bold", min_width=25)
    table.add_column("Rate", justify="right")
    table.add_column("Hours", justify="right")
    table.add_column("Current", justify="right", min_width=12)
    table.add_column("YTD", justify="right", min_width=12)

    # Earnings
    table.add_row("[bold]EARNINGS[/bold]", "", "", "", "")
    for earning in data["earnings"]:
        hours = f"{earning['hours']:,.2f}" if earning["hours"] else ""
        table.add_row(
            f"  {earning['description']}",
            _fmt(earning["rate"]),
            hours,
            _fmt(earning["amount"]),
            _fmt(earning["ytd_amount"]),
        )
    table.add_row("  Gross Pay", "", "", _fmt(current["gross_pay"]), _fmt(ytd["gross_pay"]))
    table.add_row("", "", "", "", "")

    # Deductions
    if data["deductions"]:
        table.add_row("[bold]DEDUCTIONS[/bold]", "", "", "", "")
        for deduction in data["deductions"]:
            label = deduction["description"] or deduction["category"]
            kind = "pre-tax" if deduction["category"] == "pre_tax" else "post-tax"
            table.add_row(f"  {label} [dim]({kind})[/dim]", "", "", _fmt(deduction["amount"]), "")
        table.add_row("", "", "", "", "")

    table.add_row(
        "Taxable Gross", "", "", _fmt(current["taxable_gross"]), _fmt(ytd["taxable_gross"]), style="dim"
    )
    table.add_row("", "", "", "", "")

    # Taxes
    table.add_row("[bold]TAXES[/bold]", "", "", "", "")
    for key, amount in current["taxes"].items():
        if key.startswith("local."):
            label = "Local: " + key.split(".", 1)[1].replace("_", " ").title()
        else:
            label = TAX_LABELS.get(key, key)
        if amount or ytd["taxes"].get(key):
            table.add_row(f"  {label}", "", "", _fmt(amount), _fmt(ytd["taxes"].get(key)))
    table.add_row(
        "  [dim]Total Taxes[/dim]", "", "",
        f"[dim]{_fmt(current['total_taxes'])}[/dim]",
        f"[dim]{_fmt(ytd['total_taxes'])}[/dim]",
    )
    table.add_row("", "", "", "", "")

    net_style = "bold green" if current["net_pay"] >= 0 else "bold red"
    table.add_row(
        f"[{net_style}]NET PAY[/{net_style}]", "", "",
        f"[{net_style}]{_fmt(current['net_pay'])}[/{net_style}]",
        _fmt(ytd["net_pay"]),
    )

    console.print(table)


def _fmt(amount: float | None) -> str:
    """Format currency amount."""
    if amount is None:
        return "-"
    if amount < 0:
        return f"-${-amount:,.2f}"
    return f"${amount:,.2f}"
