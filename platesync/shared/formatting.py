"""Display formatting shared by emails, PDFs and API responses"""

from datetime import date, datetime
from decimal import Decimal
from typing import Union

Number = Union[Decimal, float, int, str, None]


def to_decimal(amount: Number) -> Decimal:
    if amount is None or amount == "":
        return Decimal("0.00")
    return Decimal(str(amount)).quantize(Decimal("0.01"))


def format_amount(amount: Number) -> str:
    """Plain two-decimal string, e.g. 1234.50"""
    return f"{to_decimal(amount):.2f}"


def format_currency(amount: Number) -> str:
    """Two decimals with thousands separators, e.g. 1,234.50"""
    return f"{to_decimal(amount):,.2f}"


def format_long_date(value: Union[date, datetime]) -> str:
    """Month D, YYYY"""
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def percent_change(current: Decimal, previous: Decimal) -> float:
    """Percent change rounded to one decimal; 0 when there is no previous value"""
    if not previous:
        return 0.0
    return round(float((current - previous) / previous * 100), 1)
