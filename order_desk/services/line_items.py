"""
Sales order line items and order totals.

A LineItem is an immutable snapshot of one order row. Every edit goes
through one of the transition functions below, which return a new LineItem
with the canonical piece quantity, the displayed values and the auto
remarks kept consistent:

- switch_display_unit: re-derives the displayed quantity from the canonical
  quantity and rescales the price so the line value is unchanged.
- set_display_quantity: rounds the typed quantity to 2 places and re-derives
  the canonical quantity from the rounded value.
- set_unit_price: stores the price as entered (to the cent), in the current
  display unit.

Remarks typed by the user are never overwritten. While the field is blank,
or still holds text generated by an earlier edit, it is regenerated from
the canonical quantity on every quantity or unit change.
"""
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Union

from order_desk.services.piece_display import DEFAULT_UNIT_LABEL, generate_remarks_text
from order_desk.services.unit_conversion import (
    DisplayUnit,
    Number,
    convert_price,
    round2,
    to_decimal,
    to_display_quantity,
    to_system_quantity,
    unit_price_to_piece_price,
)
from order_desk.utils.formatters import format_weight


@dataclass(frozen=True)
class LineItem:
    """One product row of a sales order under composition."""
    product_id: int
    pieces_per_unit: Optional[int] = None
    display_unit: DisplayUnit = DisplayUnit.PIECE
    display_quantity: Optional[Decimal] = Decimal('1')
    quantity: Optional[Decimal] = Decimal('1')
    unit_price: Optional[Decimal] = None
    remarks: str = ''
    remarks_generated: bool = False
    unit_label: str = DEFAULT_UNIT_LABEL

    def __post_init__(self):
        object.__setattr__(self, 'display_unit', DisplayUnit.parse(self.display_unit))
        for name in ('display_quantity', 'quantity', 'unit_price'):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))
        object.__setattr__(self, 'remarks', self.remarks or '')


@dataclass(frozen=True)
class OrderTotals:
    """Order-level totals in piece basis."""
    total_amount: Decimal
    total_weight: Decimal
    weight_display: str
    line_count: int


def new_line_item(product_id: int, pieces_per_unit: Optional[int] = None, unit_label: str = DEFAULT_UNIT_LABEL) -> LineItem:
    """A freshly added row: one piece, no price, no remarks."""
    return LineItem(
        product_id=product_id,
        pieces_per_unit=pieces_per_unit,
        unit_label=unit_label or DEFAULT_UNIT_LABEL
    )


def _fill_remarks(line: LineItem) -> LineItem:
    if line.remarks.strip() and not line.remarks_generated:
        return line
    remarks = generate_remarks_text(line.quantity, line.pieces_per_unit, line.unit_label)
    return replace(line, remarks=remarks, remarks_generated=bool(remarks))


def switch_display_unit(line: LineItem, to_unit: Union[DisplayUnit, str]) -> LineItem:
    """Show the line in another unit without changing what is ordered."""
    to_unit = DisplayUnit.parse(to_unit)
    if to_unit is line.display_unit:
        return line

    updated = replace(
        line,
        display_unit=to_unit,
        display_quantity=to_display_quantity(line.quantity, to_unit, line.pieces_per_unit),
        unit_price=convert_price(line.unit_price, line.display_unit, to_unit, line.pieces_per_unit)
    )
    return _fill_remarks(updated)


def _typed_value(value: Optional[Number]) -> Optional[Decimal]:
    # Stored with two decimals, so round before deriving anything from it
    value = to_decimal(value)
    return None if value is None else round2(value)


def set_display_quantity(line: LineItem, display_quantity: Optional[Number]) -> LineItem:
    """Apply a quantity typed in the current display unit."""
    display_quantity = _typed_value(display_quantity)
    updated = replace(
        line,
        display_quantity=display_quantity,
        quantity=to_system_quantity(display_quantity, line.display_unit, line.pieces_per_unit)
    )
    return _fill_remarks(updated)


def set_unit_price(line: LineItem, unit_price: Optional[Number]) -> LineItem:
    """Apply a price typed in the current display unit."""
    return replace(line, unit_price=_typed_value(unit_price))


def set_remarks(line: LineItem, remarks: Optional[str]) -> LineItem:
    """Store user-authored remarks (blank re-enables auto remarks on the next edit)."""
    return replace(line, remarks=(remarks or '').strip(), remarks_generated=False)


def piece_price_of(line: LineItem) -> Optional[Decimal]:
    """Price per piece regardless of the display unit."""
    if line.display_unit is DisplayUnit.UNIT:
        return unit_price_to_piece_price(line.unit_price, line.pieces_per_unit)
    return line.unit_price


def line_amount(line: LineItem) -> Decimal:
    """quantity (pieces) x piece price; zero while either is missing."""
    piece_price = piece_price_of(line)
    if line.quantity is None or piece_price is None:
        return Decimal('0.00')
    return round2(line.quantity * piece_price)


def calculate_order_totals(
    lines: Iterable[LineItem],
    weights_per_piece: Optional[Mapping[int, Optional[Number]]] = None
) -> OrderTotals:
    """
    Sum amount and weight over all lines in piece basis.

    weights_per_piece maps product id -> kg per piece. Products without a
    weight, and lines without a quantity, add nothing to the weight.
    """
    weights_per_piece = weights_per_piece or {}
    total_amount = Decimal('0.00')
    total_weight = Decimal('0')
    line_count = 0

    for line in lines:
        line_count += 1
        total_amount += line_amount(line)

        weight = to_decimal(weights_per_piece.get(line.product_id))
        if weight is not None and line.quantity is not None:
            total_weight += line.quantity * weight

    return OrderTotals(
        total_amount=round2(total_amount),
        total_weight=total_weight,
        weight_display=format_weight(total_weight),
        line_count=line_count
    )
