"""Exceptions raised by the payroll engine."""

from typing import Dict, Optional


class ConfigurationError(Exception):
    """Raised when tax tables or pay frequency configuration are missing or invalid.

    Fatal for the computation: nothing partial is returned.
    """
    pass


class InputError(ValueError):
    """Raised when pay inputs are malformed (negative hours, non-numeric rate, ...).

    Attributes:
        errors: Mapping of field path (e.g. 'earnings[0].hours') to message
    """

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        self.errors = dict(errors)
        if message is None:
            message = "; ".join(f"{field}: {msg}" for field, msg in self.errors.items())
        super().__init__(message)
