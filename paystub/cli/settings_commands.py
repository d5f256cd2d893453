"""Settings CLI commands for Paystub.

Manages settings.json - default tax year and tax rules location.
"""

from pathlib import Path

import click

from paystub.sdk import (
    load_settings,
    save_settings,
    set_setting,
    get_settings_path,
    get_config_dir,
    get_available_tax_years,
)

KNOWN_SETTINGS = ("tax_year", "tax_rules_dir")


@click.group()
def settings():
    """Manage settings (settings.json).

    Available settings:
    - tax_year: default tax year for calculations
    - tax_rules_dir: directory holding {year}.yaml tax tables
    """
    pass


@settings.command("show")
def settings_show():
    """Show current settings and their values."""
    settings_path = get_settings_path()
    current = load_settings()

    click.echo(f"Settings file: {settings_path}")
    click.echo(f"File exists: {settings_path.exists()}")
    click.echo()

    if not current:
        click.echo("No settings configured (using defaults).")
    else:
        click.echo("Current settings:")
        for key, value in current.items():
            click.echo(f"  {key}: {value}")

    click.echo()
    click.echo(f"Config directory: {get_config_dir()}")
    years = get_available_tax_years()
    click.echo(f"Tax years available: {', '.join(str(y) for y in years) or 'none'}")


@settings.command("set")
@click.argument("key", type=click.Choice(KNOWN_SETTINGS))
@click.argument("value")
def settings_set(key, value):
    """Set a setting.

    Examples:
        paystub settings set tax_year 2025
        paystub settings set tax_rules_dir ~/tax-rules
    """
    if key == "tax_year":
        if not value.isdigit() or len(value) != 4:
            raise click.BadParameter(f"Invalid year '{value}'. Must be 4 digits.", param_hint="VALUE")
        stored = int(value)
    else:
        rules_dir = Path(value).expanduser().resolve()
        if not rules_dir.is_dir():
            raise click.ClickException(f"Not a directory: {rules_dir}")
        stored = str(rules_dir)

    path = set_setting(key, stored)
    click.echo(f"Set {key}: {stored}")
    click.echo(f"Saved to: {path}")


@settings.command("unset")
@click.argument("key", type=click.Choice(KNOWN_SETTINGS))
def settings_unset(key):
    """Clear a setting, reverting to its default."""
    current = load_settings()
    if key not in current:
        click.echo(f"{key} was not set.")
        return
    del current[key]
    save_settings(current)
    click.echo(f"Cleared {key} setting.")
