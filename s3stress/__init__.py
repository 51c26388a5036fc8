"""Synthetic object data sources, operation records and benchmark analysis."""

__version__ = "0.1.0"