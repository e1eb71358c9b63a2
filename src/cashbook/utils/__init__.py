"""Utility functions for cashbook."""

from cashbook.utils.date_parser import get_date_range, parse_date
from cashbook.utils.amount_parser import format_amount, parse_amount

__all__ = ["get_date_range", "parse_date", "format_amount", "parse_amount"]
