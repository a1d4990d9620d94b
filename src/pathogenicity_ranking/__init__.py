"""Composite pathogenicity ranking for missense variants."""

__version__ = "0.2.0"
