"""Utilities module for the Invest Journal backend."""

from .formatters import (
    format_korean_currency,
    format_chart_currency,
    format_percentage,
)

__all__ = [
    "format_korean_currency",
    "format_chart_currency",
    "format_percentage",
]
