"""Configuration management for Paystub.

Configuration lives in one directory:

1. settings.json - Machine-specific settings
   - tax_year: default tax year for the CLI
   - tax_rules_dir: directory holding {year}.yaml tax tables (optional)

2. tax-rules/{year}.yaml - User-supplied tax tables that override the
   tables bundled with the package

Config directory resolution:
1. PAYSTUB_CONFIG_PATH environment variable (if set)
2. ~/.config/paystub/ (XDG_CONFIG_HOME fallback)
"""

import json
import os
from pathlib import Path
from typing import Any, Optional


APP_NAME = "paystub"
SETTINGS_FILENAME = "settings.json"
TAX_RULES_DIRNAME = "tax-rules"

# Tables bundled with the package
BUNDLED_TAX_RULES_DIR = Path(__file__).parent / "taxes" / "rules"


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Resolution order:
    1. PAYSTUB_CONFIG_PATH environment variable
    2. ~/.config/paystub/ (XDG_CONFIG_HOME)

    Returns:
        Path to the configuration directory
    """
    env_path = os.environ.get("PAYSTUB_CONFIG_PATH")
    if env_path:
        return Path(env_path)

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
    return Path(xdg_config_home) / APP_NAME


def get_settings_path() -> Path:
    """Get the path to settings.json (may not exist yet)."""
    return get_config_dir() / SETTINGS_FILENAME


def load_settings() -> dict:
    """Load settings from settings.json.

    Returns:
        Settings dictionary (empty dict if file doesn't exist)
    """
    settings_file = get_settings_path()

    if not settings_file.exists():
        return {}

    with open(settings_file, "r") as f:
        return json.load(f)


def save_settings(settings: dict) -> Path:
    """Save settings to settings.json.

    Returns:
        Path to the saved settings file
    """
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    settings_file = config_dir / SETTINGS_FILENAME

    with open(settings_file, "w") as f:
        json.dump(settings, f, indent=2)

    return settings_file


def get_setting(key: str, default: Any = None) -> Any:
    """Get a setting value from settings.json."""
    settings = load_settings()
    return settings.get(key, default)


def set_setting(key: str, value: Any) -> Path:
    """Set a setting value in settings.json.

    Returns:
        Path to the saved settings file
    """
    settings = load_settings()
    settings[key] = value
    return save_settings(settings)


def find_tax_rules_file(year: int) -> Optional[Path]:
    """Locate the tax rules file for a year.

    Resolution order:
    1. settings.json 'tax_rules_dir' / {year}.yaml
    2. <config dir>/tax-rules/{year}.yaml
    3. Bundled rules shipped with the package

    Returns:
        Path to the first existing file, or None if no file exists
    """
    candidates = []
    custom_dir = get_setting("tax_rules_dir")
    if custom_dir:
        candidates.append(Path(custom_dir).expanduser() / f"{year}.yaml")
    candidates.append(get_config_dir() / TAX_RULES_DIRNAME / f"{year}.yaml")
    candidates.append(BUNDLED_TAX_RULES_DIR / f"{year}.yaml")

    for path in candidates:
        if path.exists():
            return path
    return None


def get_available_tax_years() -> list[int]:
    """Years with tax rules available from any location (descending)."""
    dirs = [get_config_dir() / TAX_RULES_DIRNAME, BUNDLED_TAX_RULES_DIR]
    custom_dir = get_setting("tax_rules_dir")
    if custom_dir:
        dirs.insert(0, Path(custom_dir).expanduser())

    years = set()
    for rules_dir in dirs:
        if rules_dir.is_dir():
            years.update(int(p.stem) for p in rules_dir.glob("*.yaml") if p.stem.isdigit())
    return sorted(years, reverse=True)
