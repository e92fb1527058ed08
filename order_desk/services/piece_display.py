"""
Piece count display and parsing.

Quantities are stored as a total number of pieces. For display they are
broken down into whole units plus remaining pieces ("3 boxes + 4 pieces"),
and user input in that shape is parsed back into a piece total.
"""
import re
from dataclasses import dataclass
from decimal import Decimal, ROUND_FLOOR
from typing import Optional

from order_desk.services.unit_conversion import Number, pack_ratio, to_decimal
from order_desk.utils.formatters import format_number

DEFAULT_UNIT_LABEL = 'unit'
DEFAULT_PIECE_LABEL = 'piece'


@dataclass(frozen=True)
class PieceDisplay:
    """Breakdown of a piece total into whole units and remaining pieces."""
    full_units: int
    remaining_pieces: Decimal
    total_pieces: Decimal
    display_text: str
    detail_text: str


def pluralize(label: str, count) -> str:
    """Return the label in plural form unless count is exactly 1."""
    if count == 1:
        return label
    if re.search(r'(s|x|z|ch|sh)$', label):
        return label + 'es'
    if re.search(r'[^aeiou]y$', label):
        return label[:-1] + 'ies'
    return label + 's'


def _count(value, label: str) -> str:
    return f"{format_number(value)} {pluralize(label, value)}"


def calculate_piece_display(
    total_pieces: Number,
    pieces_per_unit: Optional[Number],
    unit_label: str = DEFAULT_UNIT_LABEL,
    piece_label: str = DEFAULT_PIECE_LABEL
) -> PieceDisplay:
    """
    Break a piece total down into whole units and remaining pieces.

    Without a usable pack ratio every piece is a remaining piece.

    Raises:
        ValueError: if total_pieces is missing or negative.
    """
    total = to_decimal(total_pieces)
    if total is None or total < 0:
        raise ValueError('Total pieces must be a non-negative number')

    ratio = pack_ratio(pieces_per_unit)
    if ratio is None:
        full_units = 0
        remaining = total
    else:
        full_units = int((total / ratio).to_integral_value(rounding=ROUND_FLOOR))
        remaining = total - full_units * ratio

    if full_units == 0:
        display_text = _count(remaining, piece_label)
    elif remaining == 0:
        display_text = _count(full_units, unit_label)
    else:
        display_text = f"{_count(full_units, unit_label)} + {_count(remaining, piece_label)}"

    detail_text = f"{display_text} ({_count(total, piece_label)} total)"

    return PieceDisplay(
        full_units=full_units,
        remaining_pieces=remaining,
        total_pieces=total,
        display_text=display_text,
        detail_text=detail_text
    )


def generate_remarks_text(
    total_pieces: Optional[Number],
    pieces_per_unit: Optional[Number],
    unit_label: str = DEFAULT_UNIT_LABEL,
    piece_label: str = DEFAULT_PIECE_LABEL
) -> str:
    """
    Auto-note for a line whose piece total is not a whole number of units.

    Returns an empty string when there is nothing to explain: no usable pack
    ratio, no positive quantity, or a quantity that divides evenly.

    Example:
        generate_remarks_text(17, 5) -> "3 units + 2 pieces"
    """
    total = to_decimal(total_pieces)
    if pack_ratio(pieces_per_unit) is None or total is None or total <= 0:
        return ''

    display = calculate_piece_display(total, pieces_per_unit, unit_label, piece_label)
    if display.remaining_pieces == 0:
        return ''
    return display.display_text


def _label_pattern(*labels: str) -> str:
    forms = set()
    for label in labels:
        label = label.strip().lower()
        if label:
            forms.add(re.escape(label))
            forms.add(re.escape(pluralize(label, 2)))
    # Longest first so "boxes" wins over "box"
    return '(?:' + '|'.join(sorted(forms, key=len, reverse=True)) + ')'


def parse_quantity_text(
    text: str,
    pieces_per_unit: Optional[Number],
    unit_label: str = DEFAULT_UNIT_LABEL,
    piece_label: str = DEFAULT_PIECE_LABEL
) -> Decimal:
    """
    Parse a typed quantity into a total number of pieces.

    Accepted forms (labels are case-insensitive, singular or plural, and
    the generic words "unit" / "piece" / "pcs" always work):
        "100"                 -> 100 pieces
        "100 pieces"          -> 100 pieces
        "10 boxes"            -> 10 x pieces_per_unit
        "10 boxes + 5 pieces" -> 10 x pieces_per_unit + 5

    Raises:
        ValueError: on empty or malformed input, when the pieces part of a
            mixed quantity is not smaller than pieces_per_unit, or when units
            are used for a product without a pack ratio.
    """
    if text is None or not str(text).strip():
        raise ValueError('Please enter a quantity')

    cleaned = ' '.join(str(text).strip().lower().split())
    unit_re = _label_pattern(unit_label, DEFAULT_UNIT_LABEL)
    piece_re = _label_pattern(piece_label, DEFAULT_PIECE_LABEL, 'pc', 'pcs')
    ratio = pack_ratio(pieces_per_unit)

    mixed = re.fullmatch(rf'(\d+)\s*{unit_re}\s*\+\s*(\d+)\s*{piece_re}', cleaned)
    if mixed:
        units, pieces = Decimal(mixed.group(1)), Decimal(mixed.group(2))
        if ratio is None:
            raise ValueError('This product has no pieces-per-unit ratio; enter pieces only')
        if pieces >= ratio:
            raise ValueError(f'Pieces must be fewer than the pieces per unit ({format_number(ratio)})')
        return units * ratio + pieces

    units_only = re.fullmatch(rf'(\d+)\s*{unit_re}', cleaned)
    if units_only:
        if ratio is None:
            raise ValueError('This product has no pieces-per-unit ratio; enter pieces only')
        return Decimal(units_only.group(1)) * ratio

    pieces_only = re.fullmatch(rf'(\d+)(?:\s*{piece_re})?', cleaned)
    if pieces_only:
        return Decimal(pieces_only.group(1))

    raise ValueError(
        f'Invalid quantity. Use 100, 100 {pluralize(piece_label, 2)}, '
        f'10 {pluralize(unit_label, 2)} or 10 {pluralize(unit_label, 2)} + 5 {pluralize(piece_label, 2)}'
    )
