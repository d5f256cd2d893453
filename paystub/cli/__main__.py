"""Paystub CLI - Command-line interface for pay stub calculations."""

import json
import logging
from pathlib import Path

import click
from rich import box
from rich.console import Console
from rich.table import Table

from paystub import __version__
from paystub.sdk import (
    ConfigurationError,
    InputError,
    PayrollEngine,
    build_stub_summary,
    generate_series,
    get_available_tax_years,
    load_tax_tables,
    result_to_display,
    solve_gross_for_net,
)

from .renderers.stub_renderer import render_stub, _fmt
from .request import load_request
from .settings_commands import settings as settings_group

FORMAT_OPTION = click.option(
    "--format", "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format (default: table)",
)
INPUT_ARGUMENT = click.argument(
    "input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)


@click.group()
@click.version_option(version=__version__, prog_name="paystub")
@click.option("--verbose", "-v", is_flag=True, help="Log intermediate calculations to stderr.")
def cli(verbose):
    """Paystub - Payroll tax engine for pay stub generation.

    Computes gross pay, federal and state withholding, deductions, net pay
    and year-to-date totals from a YAML or JSON pay input file.

    Tax tables are loaded from (in order):

    \b
    1. settings.json 'tax_rules_dir' / {year}.yaml
    2. ~/.config/paystub/tax-rules/{year}.yaml (PAYSTUB_CONFIG_PATH overrides the directory)
    3. Tables bundled with the package

    Run 'paystub tables list' to see which tax years are available.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


cli.add_command(settings_group)


def _engine_for(year):
    try:
        return PayrollEngine(load_tax_tables(year))
    except ConfigurationError as e:
        raise click.ClickException(str(e))


def _echo_json(data):
    click.echo(json.dumps(data, indent=2, default=str))


@cli.command("calc")
@INPUT_ARGUMENT
@FORMAT_OPTION
def calc(input_file, output_format):
    """Compute one pay period from INPUT_FILE."""
    request = load_request(input_file)
    engine = _engine_for(request.tax_year)

    try:
        result = engine.compute(request.earning_lines(), request.deductions, **request.engine_kwargs())
    except (ConfigurationError, InputError) as e:
        raise click.ClickException(str(e))

    display = result_to_display(result)
    if output_format == "json":
        _echo_json(display)
        return

    title = "Pay Stub"
    if request.pay_date:
        title = f"Pay Stub - {request.pay_date.isoformat()}"
    render_stub(Console(), display, title=title)


@cli.command("series")
@INPUT_ARGUMENT
@click.option("--count", "-n", type=int, default=1, show_default=True, help="Number of consecutive stubs.")
@click.option("--first-pay-date", help="First pay date (YYYY-MM-DD). Defaults to the file's pay_date.")
@FORMAT_OPTION
def series(input_file, count, first_pay_date, output_format):
    """Compute consecutive stubs from INPUT_FILE, carrying YTD forward.

    Examples:
        paystub series stub.yaml --count 4
        paystub series stub.yaml -n 26 --first-pay-date 2025-01-10 --format json
    """
    request = load_request(input_file)
    start = first_pay_date or request.pay_date
    if start is None:
        raise click.UsageError("No first pay date: pass --first-pay-date or set pay_date in the input file.")

    engine = _engine_for(request.tax_year)
    try:
        stubs = generate_series(
            engine, start, count, request.earning_lines(), request.deductions, **request.engine_kwargs()
        )
    except ValueError as e:
        # InputError, or a malformed --first-pay-date
        raise click.ClickException(str(e))
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    if output_format == "json":
        _echo_json([
            {
                "index": stub.index,
                "pay_date": stub.pay_date.isoformat(),
                "period_start": stub.period_start.isoformat(),
                "period_end": stub.period_end.isoformat(),
                **result_to_display(stub.result),
            }
            for stub in stubs
        ])
        return

    console = Console()
    table = Table(title=f"Pay Stub Series ({request.pay_frequency})", box=box.ROUNDED)
    table.add_column("#", justify="right")
    table.add_column("Pay Date", no_wrap=True, min_width=10)
    table.add_column("Period", no_wrap=True, min_width=11)
    table.add_column("Gross", justify="right", no_wrap=True)
    table.add_column("Taxes", justify="right", no_wrap=True)
    table.add_column("Net", justify="right", no_wrap=True)
    table.add_column("YTD Gross", justify="right", no_wrap=True)
    for stub in stubs:
        r = stub.result
        table.add_row(
            str(stub.index + 1),
            stub.pay_date.isoformat(),
            f"{stub.period_start:%m/%d}-{stub.period_end:%m/%d}",
            _fmt(float(r.gross_pay)),
            _fmt(float(r.total_taxes)),
            _fmt(float(r.net_pay)),
            _fmt(float(r.updated_ytd.gross_pay)),
        )
    console.print(table)


@cli.command("net-to-gross")
@INPUT_ARGUMENT
@click.option("--net", "net_amount", required=True, help="Desired net pay for the period.")
@click.option("--earning-type", default="Salary", show_default=True, help="Earning type carrying the solved gross.")
@FORMAT_OPTION
def net_to_gross(input_file, net_amount, earning_type, output_format):
    """Find the gross pay that yields --net, using INPUT_FILE's configuration.

    The file's earnings are ignored; its deductions, YTD and filing
    configuration apply.
    """
    request = load_request(input_file)
    engine = _engine_for(request.tax_year)

    try:
        solved = solve_gross_for_net(
            engine, net_amount, request.deductions, earning_type=earning_type, **request.engine_kwargs()
        )
    except (ConfigurationError, InputError) as e:
        raise click.ClickException(str(e))

    if output_format == "json":
        _echo_json({
            "gross": float(solved["gross"]),
            "net": float(solved["net"]),
            "iterations": solved["iterations"],
            "stub": result_to_display(solved["result"]),
        })
        return

    click.echo(f"Gross pay: {_fmt(float(solved['gross']))}")
    click.echo(f"Net pay:   {_fmt(float(solved['net']))}")
    click.echo()
    render_stub(Console(), result_to_display(solved["result"]), title="Solved Pay Stub")


@cli.command("summary")
@INPUT_ARGUMENT
def summary(input_file):
    """Print the delivery summary (JSON) for INPUT_FILE's stub.

    Requires employee_name, company_name and pay_date in the input file.
    """
    request = load_request(input_file)
    missing = [
        name for name in ("employee_name", "company_name", "pay_date")
        if getattr(request, name) is None
    ]
    if missing:
        raise click.ClickException(f"{input_file} is missing: {', '.join(missing)}")

    engine = _engine_for(request.tax_year)
    try:
        result = engine.compute(request.earning_lines(), request.deductions, **request.engine_kwargs())
    except (ConfigurationError, InputError) as e:
        raise click.ClickException(str(e))

    stub_summary = build_stub_summary(result, request.employee_name, request.company_name, request.pay_date)
    _echo_json(stub_summary.model_dump(mode="json"))


@cli.group("tables")
def tables():
    """Inspect tax tables."""
    pass


@tables.command("list")
def tables_list():
    """List tax years with tables available."""
    years = get_available_tax_years()
    if not years:
        click.echo("No tax tables found.")
        return
    for year in years:
        click.echo(year)


@tables.command("show")
@click.argument("year", type=int, required=False)
@FORMAT_OPTION
def tables_show(year, output_format):
    """Show tax tables for YEAR (default: the tax_year setting)."""
    try:
        tax_tables = load_tax_tables(year)
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    if output_format == "json":
        _echo_json(tax_tables.model_dump(mode="json"))
        return

    console = Console()
    federal = tax_tables.federal
    _print_brackets(console, f"{tax_tables.year} Federal Income Tax", federal.brackets)
    console.print(f"Social Security: {federal.social_security.rate:%} up to {_cap(federal.social_security.wage_cap)}")
    medicare = federal.medicare
    if medicare.additional_rate_threshold is None:
        console.print(f"Medicare: {medicare.rate:%}")
    else:
        console.print(
            f"Medicare: {medicare.rate:%}, plus {medicare.additional_rate:%} "
            f"over {_fmt(float(medicare.additional_rate_threshold))}"
        )

    state = tax_tables.state
    if state is None:
        return
    console.print()
    _print_brackets(console, f"{tax_tables.year} {state.name} Income Tax", state.brackets)
    for label, rules in (
        ("Disability", state.disability),
        ("Family Leave", state.family_leave),
        ("Unemployment", state.unemployment),
    ):
        if rules is not None:
            console.print(f"{label}: {rules.rate:%} up to {_cap(rules.wage_cap)}")
    if state.local_surcharge is not None:
        console.print(f"Local surcharge ({state.local_surcharge.name}): {state.local_surcharge.rate:%}")


def _cap(wage_cap):
    return "no cap" if wage_cap is None else _fmt(float(wage_cap))


def _print_brackets(console, title, brackets_by_status):
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Filing Status")
    table.add_column("Over", justify="right")
    table.add_column("Up To", justify="right")
    table.add_column("Rate", justify="right")
    for status, brackets in brackets_by_status.items():
        for i, bracket in enumerate(brackets):
            table.add_row(
                status if i == 0 else "",
                _fmt(float(bracket.lower)),
                _cap(bracket.upper) if bracket.upper is not None else "-",
                f"{bracket.rate:.2%}",
            )
    console.print(table)


def main():
    cli()


if __name__ == "__main__":
    main()
