"""Paystub - payroll tax engine for pay stub generation."""

__version__ = "0.3.0"
