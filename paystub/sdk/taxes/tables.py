"""Tax table loading.

Tables are YAML files ({year}.yaml) validated into a frozen TaxTableSet.
The engine never loads tables itself: callers load them once and inject the
result. TaxTableSource wraps a loader with a fetch-once guard for callers
that want lazy loading shared across threads or async tasks.
"""

import asyncio
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Optional, Union

import yaml
from pydantic import ValidationError

from ..config import find_tax_rules_file, get_setting
from ..errors import ConfigurationError
from .schemas import TaxTableSet

logger = logging.getLogger(__name__)

DEFAULT_TAX_YEAR = 2025


def parse_tax_tables(data: Any, source: str = "<data>") -> TaxTableSet:
    """Validate raw tax table data into a TaxTableSet.

    Args:
        data: Parsed YAML/JSON mapping
        source: Description of where the data came from (for messages)

    Raises:
        ConfigurationError: If the data is not a mapping or fails validation
    """
    if not isinstance(data, dict):
        raise ConfigurationError(f"Tax tables in {source} must be a mapping, got {type(data).__name__}")
    try:
        return TaxTableSet.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid tax tables in {source}:\n{e}") from e


def load_tax_tables_file(path: Union[str, Path]) -> TaxTableSet:
    """Load and validate tax tables from a YAML file.

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Tax rules file not found: {path}")

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Could not parse tax rules file {path}: {e}") from e

    tables = parse_tax_tables(data, source=str(path))
    logger.debug(f"Loaded {tables.year} tax tables from {path}")
    return tables


def load_tax_tables(year: Optional[int] = None) -> TaxTableSet:
    """Load tax tables for a year.

    Args:
        year: Tax year. Defaults to the 'tax_year' setting, then DEFAULT_TAX_YEAR.

    Raises:
        ConfigurationError: If no rules file exists for the year, or the file's
            year does not match
    """
    if year is None:
        year = int(get_setting("tax_year", DEFAULT_TAX_YEAR))

    path = find_tax_rules_file(year)
    if path is None:
        raise ConfigurationError(f"Tax rules file not found for year {year}")

    tables = load_tax_tables_file(path)
    if tables.year != year:
        raise ConfigurationError(f"{path} declares year {tables.year}, expected {year}")
    return tables


class TaxTableSource:
    """Fetch-once provider of a TaxTableSet.

    The loader runs at most once successfully; concurrent first callers wait
    on a lock and share the result. A failed load is not cached, so the next
    call retries. Retrying is the caller's decision; nothing here loops.

    Usage:
        source = TaxTableSource(lambda: load_tax_tables(2025))
        engine = PayrollEngine(source.get())
    """

    def __init__(self, loader: Callable[[], TaxTableSet]):
        self._loader = loader
        self._tables: Optional[TaxTableSet] = None
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._tables is not None

    def get(self) -> TaxTableSet:
        """Return the tables, loading them on first use."""
        if self._tables is not None:
            return self._tables
        with self._lock:
            if self._tables is None:
                tables = self._loader()
                if not isinstance(tables, TaxTableSet):
                    raise ConfigurationError(
                        f"Tax table loader returned {type(tables).__name__}, expected TaxTableSet"
                    )
                self._tables = tables
        return self._tables

    async def aget(self) -> TaxTableSet:
        """Async variant of get(); the loader runs in a worker thread."""
        if self._tables is not None:
            return self._tables
        return await asyncio.to_thread(self.get)
