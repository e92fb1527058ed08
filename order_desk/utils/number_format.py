"""Parsing utilities for numbers and dates typed into order forms."""
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

NUMBER_PATTERN = re.compile(r"^(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?$")


def parse_decimal(value: Union[str, int, float, Decimal]) -> Decimal:
    """
    Parse a non-negative number, e.g. "1,234.56", "1234.5" or 12.

    Rules:
    - Thousands separator: comma (,), optional, with proper grouping
    - Decimal separator: dot (.)
    - Variable decimal digits
    - No negatives

    Raises:
        ValueError: if the value is invalid or empty.
    """
    if value is None:
        raise ValueError('Invalid number. Use 1,234.56 or 1234.56')

    if isinstance(value, bool):
        raise ValueError('Invalid number. Use 1,234.56 or 1234.56')

    if isinstance(value, (int, float, Decimal)):
        decimal_value = Decimal(str(value))
    else:
        cleaned = value.strip()
        if not cleaned or not NUMBER_PATTERN.match(cleaned.lstrip('-')):
            raise ValueError('Invalid number. Use 1,234.56 or 1234.56')
        try:
            decimal_value = Decimal(cleaned.replace(',', ''))
        except (InvalidOperation, ValueError):
            raise ValueError('Invalid number. Use 1,234.56 or 1234.56')

    if not decimal_value.is_finite():
        raise ValueError('Invalid number. Use 1,234.56 or 1234.56')

    if decimal_value < 0:
        raise ValueError('The value cannot be negative')

    return decimal_value


def parse_optional_decimal(value: Union[str, int, float, Decimal, None]) -> Optional[Decimal]:
    """
    Like parse_decimal, but None or a blank string means "not entered"
    and returns None instead of zero.
    """
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return parse_decimal(value)


def parse_optional_date(value: Union[str, date, None]) -> Optional[date]:
    """Parse YYYY-MM-DD; None or blank returns None."""
    if value is None or isinstance(value, date):
        return value
    cleaned = str(value).strip()
    if not cleaned:
        return None
    try:
        return datetime.strptime(cleaned, '%Y-%m-%d').date()
    except ValueError:
        raise ValueError('Invalid date. Use YYYY-MM-DD')
