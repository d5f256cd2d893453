"""Tests for tax table loading, validation and the fetch-once source.

Uses isolated directories via tmp_path and PAYSTUB_CONFIG_PATH
to avoid reading user configuration.

Tests:
1. Bundled 2025 tables load and validate
2. Validation rejects non-contiguous tables, bounded top brackets,
   rates over 1, unknown fields and a default_status with no table
3. Resolution order: tax_rules_dir setting, config dir, bundled
4. Missing year and year mismatch are configuration errors
5. TaxTableSource loads once, shares across threads, retries after failure
"""

import asyncio
import copy
import json
import threading
from decimal import Decimal

import pytest
import yaml

from paystub.sdk import ConfigurationError
from paystub.sdk.taxes import (
    TaxTableSet,
    TaxTableSource,
    load_tax_tables,
    load_tax_tables_file,
    parse_tax_tables,
)


# === FIXTURES ===


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """Point the SDK at an empty config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    monkeypatch.setenv("PAYSTUB_CONFIG_PATH", str(config_dir))
    return {"config_dir": config_dir, "tmp_path": tmp_path}


@pytest.fixture
def minimal_tables():
    """Federal-only tables with a flat 10% bracket."""
    return {
        "year": 2030,
        "federal": {
            "brackets": {"single": [{"lower": 0, "upper": None, "rate": 0.10}]},
            "standard_deductions": {"single": 1000},
            "social_security": {"rate": 0.062, "wage_cap": 100000},
            "medicare": {"rate": 0.0145},
        },
    }


def write_rules(directory, year, data):
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{year}.yaml"
    path.write_text(yaml.dump(data))
    return path


# === BUNDLED TABLES ===


def test_bundled_2025_tables(isolated_env):
    tables = load_tax_tables(2025)

    assert tables.year == 2025
    assert set(tables.federal.brackets) == {
        "single", "marriedfilingjointly", "marriedfilingseparately", "headofhousehold"
    }
    assert tables.federal.standard_deductions["single"] == Decimal("15750")
    assert tables.federal.social_security.wage_cap == Decimal("176100")
    assert tables.federal.medicare.additional_rate_threshold == Decimal("200000")
    assert tables.state.name == "New Jersey"
    assert tables.state.default_status == "single"
    assert tables.state.unemployment.wage_cap == Decimal("43300")
    assert tables.federal.brackets["single"][-1].upper is None


def test_default_year_from_settings(isolated_env, minimal_tables):
    config_dir = isolated_env["config_dir"]
    write_rules(config_dir / "tax-rules", 2030, minimal_tables)
    (config_dir / "settings.json").write_text(json.dumps({"tax_year": 2030}))

    assert load_tax_tables().year == 2030


def test_tables_are_frozen(isolated_env):
    tables = load_tax_tables(2025)
    with pytest.raises(Exception):
        tables.year = 2026


# === VALIDATION ===


class TestValidation:

    def test_valid_minimal(self, minimal_tables):
        tables = parse_tax_tables(minimal_tables)
        assert isinstance(tables, TaxTableSet)
        assert tables.state is None

    def test_non_contiguous_brackets(self, minimal_tables):
        data = copy.deepcopy(minimal_tables)
        data["federal"]["brackets"]["single"] = [
            {"lower": 0, "upper": 10000, "rate": 0.10},
            {"lower": 12000, "upper": None, "rate": 0.20},
        ]
        with pytest.raises(ConfigurationError, match="contiguous"):
            parse_tax_tables(data)

    def test_bounded_last_bracket(self, minimal_tables):
        data = copy.deepcopy(minimal_tables)
        data["federal"]["brackets"]["single"] = [{"lower": 0, "upper": 10000, "rate": 0.10}]
        with pytest.raises(ConfigurationError, match="unbounded"):
            parse_tax_tables(data)

    def test_rate_over_one(self, minimal_tables):
        data = copy.deepcopy(minimal_tables)
        data["federal"]["brackets"]["single"][0]["rate"] = 10
        with pytest.raises(ConfigurationError):
            parse_tax_tables(data)

    def test_unknown_field(self, minimal_tables):
        data = copy.deepcopy(minimal_tables)
        data["federal"]["surtax"] = 0.05
        with pytest.raises(ConfigurationError, match="surtax"):
            parse_tax_tables(data)

    def test_default_status_without_table(self, minimal_tables):
        data = copy.deepcopy(minimal_tables)
        data["state"] = {
            "name": "Test",
            "default_status": "head_of_household",
            "brackets": {"single": [{"lower": 0, "upper": None, "rate": 0.02}]},
        }
        with pytest.raises(ConfigurationError, match="default_status"):
            parse_tax_tables(data)

    def test_not_a_mapping(self):
        with pytest.raises(ConfigurationError, match="mapping"):
            parse_tax_tables(["year", 2025])

    def test_unbounded_spellings(self, minimal_tables):
        data = copy.deepcopy(minimal_tables)
        data["federal"]["brackets"]["single"] = [
            {"lower": 0, "upper": 10000, "rate": 0.10},
            {"lower": 10000, "upper": "Infinity", "rate": 0.20},
        ]
        data["federal"]["brackets"]["head_of_household"] = [
            {"lower": 0, "upper": float("inf"), "rate": 0.10},
        ]
        tables = parse_tax_tables(data)
        assert tables.federal.brackets["single"][-1].upper is None
        assert tables.federal.brackets["headofhousehold"][0].upper is None


# === RESOLUTION ===


class TestResolution:

    def test_config_dir_overrides_bundled(self, isolated_env, minimal_tables):
        data = dict(minimal_tables, year=2025)
        write_rules(isolated_env["config_dir"] / "tax-rules", 2025, data)

        tables = load_tax_tables(2025)
        assert tables.state is None

    def test_tax_rules_dir_setting_first(self, isolated_env, minimal_tables):
        config_dir = isolated_env["config_dir"]
        custom_dir = isolated_env["tmp_path"] / "custom"
        write_rules(config_dir / "tax-rules", 2030, minimal_tables)
        custom = copy.deepcopy(minimal_tables)
        custom["federal"]["standard_deductions"]["single"] = 2222
        write_rules(custom_dir, 2030, custom)
        (config_dir / "settings.json").write_text(json.dumps({"tax_rules_dir": str(custom_dir)}))

        tables = load_tax_tables(2030)
        assert tables.federal.standard_deductions["single"] == Decimal("2222")

    def test_missing_year(self, isolated_env):
        with pytest.raises(ConfigurationError, match="1999"):
            load_tax_tables(1999)

    def test_year_mismatch(self, isolated_env, minimal_tables):
        write_rules(isolated_env["config_dir"] / "tax-rules", 2031, minimal_tables)
        with pytest.raises(ConfigurationError, match="declares year 2030"):
            load_tax_tables(2031)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_tax_tables_file(tmp_path / "nope.yaml")

    def test_unparseable_file(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("year: [2025\n")
        with pytest.raises(ConfigurationError, match="Could not parse"):
            load_tax_tables_file(path)


# === FETCH-ONCE SOURCE ===


class TestTaxTableSource:

    def test_loads_once(self, minimal_tables):
        calls = []

        def loader():
            calls.append(1)
            return parse_tax_tables(minimal_tables)

        source = TaxTableSource(loader)
        assert not source.loaded
        first = source.get()
        second = source.get()

        assert first is second
        assert source.loaded
        assert len(calls) == 1

    def test_concurrent_first_callers_share_one_load(self, minimal_tables):
        calls = []
        barrier = threading.Barrier(8)
        results = []

        def loader():
            calls.append(1)
            return parse_tax_tables(minimal_tables)

        source = TaxTableSource(loader)

        def worker():
            barrier.wait()
            results.append(source.get())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(calls) == 1
        assert all(r is results[0] for r in results)

    def test_failure_not_cached(self, minimal_tables):
        attempts = []

        def loader():
            attempts.append(1)
            if len(attempts) == 1:
                raise ConfigurationError("table service unavailable")
            return parse_tax_tables(minimal_tables)

        source = TaxTableSource(loader)
        with pytest.raises(ConfigurationError, match="unavailable"):
            source.get()
        assert not source.loaded

        assert source.get().year == 2030
        assert len(attempts) == 2

    def test_loader_wrong_type(self):
        source = TaxTableSource(lambda: {"year": 2025})
        with pytest.raises(ConfigurationError, match="expected TaxTableSet"):
            source.get()

    def test_async_get(self, minimal_tables):
        calls = []

        def loader():
            calls.append(1)
            return parse_tax_tables(minimal_tables)

        source = TaxTableSource(loader)

        async def fetch_twice():
            return await asyncio.gather(source.aget(), source.aget())

        first, second = asyncio.run(fetch_twice())
        assert first is second
        assert len(calls) == 1
