"""Tests for config directory and settings.json handling."""

import json

import pytest

from paystub.sdk import (
    find_tax_rules_file,
    get_available_tax_years,
    get_config_dir,
    get_setting,
    load_settings,
    set_setting,
)


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    config_dir = tmp_path / "config"
    monkeypatch.setenv("PAYSTUB_CONFIG_PATH", str(config_dir))
    return config_dir


def test_env_var_overrides_config_dir(isolated_env):
    assert get_config_dir() == isolated_env


def test_xdg_fallback(tmp_path, monkeypatch):
    monkeypatch.delenv("PAYSTUB_CONFIG_PATH", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    assert get_config_dir() == tmp_path / "xdg" / "paystub"


def test_settings_round_trip(isolated_env):
    assert load_settings() == {}
    assert get_setting("tax_year", 2025) == 2025

    path = set_setting("tax_year", 2026)

    assert path == isolated_env / "settings.json"
    assert json.loads(path.read_text()) == {"tax_year": 2026}
    assert get_setting("tax_year") == 2026


def test_find_tax_rules_file_bundled(isolated_env):
    path = find_tax_rules_file(2025)
    assert path is not None
    assert path.name == "2025.yaml"
    assert find_tax_rules_file(1999) is None


def test_available_years_include_user_rules(isolated_env):
    rules_dir = isolated_env / "tax-rules"
    rules_dir.mkdir(parents=True)
    (rules_dir / "2031.yaml").write_text("year: 2031\n")
    (rules_dir / "notes.yaml").write_text("{}\n")

    years = get_available_tax_years()
    assert years[0] == 2031
    assert 2025 in years
