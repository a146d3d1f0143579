"""Totals Edge - historical segment selection and percentile estimation."""

__version__ = "1.0.0"
