"""Amount parsing and formatting utilities."""

from decimal import Decimal, InvalidOperation
import re

CURRENCY_PREFIX = re.compile(r"^(rs\.?|pkr)\s*", re.IGNORECASE)


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "1500"
    - "1,500.50"
    - "Rs. 1,500"
    - "PKR 1500"

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    cleaned = CURRENCY_PREFIX.sub("", amount_str.strip())
    cleaned = cleaned.replace(",", "").strip()

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return amount


def format_amount(amount: Decimal) -> str:
    """Render an amount the way receipts show it, e.g. ``Rs. 1,500.00``."""
    return f"Rs. {amount:,.2f}"
