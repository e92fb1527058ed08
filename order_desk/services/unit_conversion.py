"""
Piece/unit conversion for sales order lines.

A product is counted and priced either per piece or per unit, where a unit
packs a fixed number of pieces (`pieces_per_unit`). Quantities are stored in
pieces; the display unit only changes how a line is shown and edited.

Rules:
- Results are rounded to 2 decimal places (ROUND_HALF_UP).
- A missing or non-positive pack ratio means "no packing relationship":
  conversions return their input unchanged.
- `None` means "not entered" and is returned as `None`, never as zero.
  Non-finite input (NaN, infinity) counts as not entered.
- Nothing here raises for degenerate numeric input.
"""
import enum
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

Number = Union[Decimal, int, float, str]

TWO_PLACES = Decimal('0.01')


class DisplayUnit(str, enum.Enum):
    """Denomination a line is displayed and edited in."""
    PIECE = 'piece'
    UNIT = 'unit'

    @classmethod
    def parse(cls, value: Union['DisplayUnit', str]) -> 'DisplayUnit':
        """Parse 'piece' / 'unit' case-insensitively; raises ValueError otherwise."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown display unit '{value}'. Use 'piece' or 'unit'.")


def to_decimal(value: Optional[Number]) -> Optional[Decimal]:
    """Coerce a numeric value to Decimal; None and non-finite values become None."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        result = Decimal(value.strip())
    else:
        result = Decimal(value)
    return result if result.is_finite() else None


def round2(value: Decimal) -> Decimal:
    """Round to 2 decimal places, half-up."""
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def pack_ratio(pieces_per_unit: Optional[Number]) -> Optional[Decimal]:
    """Return the pack ratio as Decimal, or None when there is no usable ratio."""
    ratio = to_decimal(pieces_per_unit)
    if ratio is None or ratio <= 0:
        return None
    return ratio


def pieces_to_units(pieces: Optional[Number], pieces_per_unit: Optional[Number]) -> Optional[Decimal]:
    """Convert a piece count to units."""
    pieces = to_decimal(pieces)
    ratio = pack_ratio(pieces_per_unit)
    if pieces is None or ratio is None:
        return pieces
    return round2(pieces / ratio)


def units_to_pieces(units: Optional[Number], pieces_per_unit: Optional[Number]) -> Optional[Decimal]:
    """Convert a unit count to pieces."""
    units = to_decimal(units)
    ratio = pack_ratio(pieces_per_unit)
    if units is None or ratio is None:
        return units
    return round2(units * ratio)


def to_system_quantity(
    display_quantity: Optional[Number],
    display_unit: Union[DisplayUnit, str],
    pieces_per_unit: Optional[Number]
) -> Optional[Decimal]:
    """Convert a displayed quantity to the canonical piece quantity."""
    if DisplayUnit.parse(display_unit) is DisplayUnit.UNIT:
        return units_to_pieces(display_quantity, pieces_per_unit)
    return to_decimal(display_quantity)


def to_display_quantity(
    system_quantity: Optional[Number],
    display_unit: Union[DisplayUnit, str],
    pieces_per_unit: Optional[Number]
) -> Optional[Decimal]:
    """Convert a canonical piece quantity to the given display unit."""
    if DisplayUnit.parse(display_unit) is DisplayUnit.UNIT:
        return pieces_to_units(system_quantity, pieces_per_unit)
    return to_decimal(system_quantity)


def convert_price(
    current_price: Optional[Number],
    from_unit: Union[DisplayUnit, str],
    to_unit: Union[DisplayUnit, str],
    pieces_per_unit: Optional[Number]
) -> Optional[Decimal]:
    """
    Rescale a price when the display unit changes.

    A unit costs as much as its pieces together, so piece -> unit multiplies
    by the pack ratio and unit -> piece divides by it. Quantity is rescaled
    the opposite way, which keeps quantity x price unchanged.

    Returns the price unchanged when the units are equal, the price is
    missing or not positive, or there is no usable pack ratio.
    """
    price = to_decimal(current_price)
    from_unit = DisplayUnit.parse(from_unit)
    to_unit = DisplayUnit.parse(to_unit)
    ratio = pack_ratio(pieces_per_unit)

    if from_unit is to_unit or price is None or price <= 0 or ratio is None:
        return price

    if to_unit is DisplayUnit.UNIT:
        return round2(price * ratio)
    return round2(price / ratio)


def unit_price_to_piece_price(unit_price: Optional[Number], pieces_per_unit: Optional[Number]) -> Optional[Decimal]:
    """Price per unit -> price per piece."""
    return convert_price(unit_price, DisplayUnit.UNIT, DisplayUnit.PIECE, pieces_per_unit)


def piece_price_to_unit_price(piece_price: Optional[Number], pieces_per_unit: Optional[Number]) -> Optional[Decimal]:
    """Price per piece -> price per unit."""
    return convert_price(piece_price, DisplayUnit.PIECE, DisplayUnit.UNIT, pieces_per_unit)
