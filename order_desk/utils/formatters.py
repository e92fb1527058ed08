"""
Formatting helpers for quantities, amounts and weights.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union, Optional

KILOGRAMS_PER_TONNE = Decimal('1000')


def format_number(value: Union[int, float, Decimal, str, None], decimals: Optional[int] = None) -> str:
    """
    Format a number with comma thousands separators and a dot for decimals.
    Trailing zeros in the decimal part are dropped.

    Args:
        value: Number to format
        decimals: Fixed number of decimals to round to (None = as given)

    Returns:
        Formatted string

    Examples:
        format_number(1500) -> "1,500"
        format_number(1500.5) -> "1,500.5"
        format_number(Decimal('36.00')) -> "36"
        format_number(None) -> "-"
    """
    if value is None or value == "":
        return "-"

    try:
        num = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    if num == 0:
        return "0"

    if decimals is not None:
        num = num.quantize(Decimal(10) ** -decimals, rounding=ROUND_HALF_UP)

    # Fixed-point string, never scientific notation
    num_str = format(num, 'f')

    if '.' in num_str:
        integer_part, decimal_part = num_str.split('.')
        decimal_part = decimal_part.rstrip('0')
    else:
        integer_part = num_str
        decimal_part = ""

    if integer_part.startswith('-'):
        sign_str = '-'
        integer_part = integer_part[1:]
    else:
        sign_str = ''

    # Group thousands from the right
    reversed_int = integer_part[::-1]
    groups = [reversed_int[i:i+3] for i in range(0, len(reversed_int), 3)]
    integer_formatted = ','.join(groups)[::-1]

    if decimal_part:
        return f"{sign_str}{integer_formatted}.{decimal_part}"
    return f"{sign_str}{integer_formatted}"


def format_money(value: Union[int, float, Decimal, str, None]) -> str:
    """Format an amount with exactly two decimals, e.g. 1234.5 -> "1,234.50"."""
    if value is None or value == "":
        return "-"
    try:
        num = Decimal(str(value)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError):
        return "-"
    return format(num, ',.2f')


def format_weight(kilograms: Union[int, float, Decimal, str, None]) -> str:
    """
    Format an order weight.

    Under 1000 kg the weight is shown in whole kilograms; from 1000 kg on it
    is shown in tonnes with one decimal. Both round half-up.

    Examples:
        format_weight(849.6) -> "850 kg"
        format_weight(1449) -> "1.4 t"
        format_weight(None) -> "0 kg"
    """
    try:
        weight = Decimal(str(kilograms)) if kilograms not in (None, "") else Decimal('0')
    except (InvalidOperation, ValueError, TypeError):
        weight = Decimal('0')

    if weight < KILOGRAMS_PER_TONNE:
        whole_kg = weight.quantize(Decimal('1'), rounding=ROUND_HALF_UP)
        return f"{format_number(whole_kg)} kg"

    tonnes = (weight / KILOGRAMS_PER_TONNE).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)
    return f"{format(tonnes, ',f')} t"
