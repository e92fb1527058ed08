"""
Unit tests for line item transitions and order totals.
"""

import pytest
from dataclasses import FrozenInstanceError
from decimal import Decimal

from order_desk.services.line_items import (
    LineItem,
    calculate_order_totals,
    line_amount,
    new_line_item,
    piece_price_of,
    set_display_quantity,
    set_remarks,
    set_unit_price,
    switch_display_unit,
)
from order_desk.services.unit_conversion import DisplayUnit, to_system_quantity


def _unit_line(units='3', price='120', ratio=12, product_id=1):
    """Line entered in units: display unit, quantity and price."""
    line = switch_display_unit(new_line_item(product_id, ratio, 'box'), DisplayUnit.UNIT)
    line = set_display_quantity(line, Decimal(units))
    return set_unit_price(line, Decimal(price))


class TestNewLineItem:
    """Tests for freshly added lines."""

    def test_defaults(self):
        line = new_line_item(7, 12, 'box')
        assert line.display_unit is DisplayUnit.PIECE
        assert line.display_quantity == Decimal('1')
        assert line.quantity == Decimal('1')
        assert line.unit_price is None
        assert line.remarks == ''

    def test_line_items_are_immutable(self):
        line = new_line_item(7, 12)
        with pytest.raises(FrozenInstanceError):
            line.quantity = Decimal('5')

    def test_display_unit_string_is_normalised(self):
        line = LineItem(product_id=1, pieces_per_unit=12, display_unit='UNIT')
        assert line.display_unit is DisplayUnit.UNIT


class TestUnitEntry:
    """A line priced per box: 3 boxes of 12 at 120 per box."""

    def test_quantity_is_stored_in_pieces(self):
        line = _unit_line()
        assert line.display_unit is DisplayUnit.UNIT
        assert line.display_quantity == Decimal('3')
        assert line.quantity == Decimal('36')

    def test_price_and_amount(self):
        line = _unit_line()
        assert line.unit_price == Decimal('120')
        assert piece_price_of(line) == Decimal('10')
        assert line_amount(line) == Decimal('360')

    def test_whole_units_have_no_remarks(self):
        """Test that remarks generated for the first piece are refreshed."""
        assert _unit_line().remarks == ''

    def test_switch_to_piece_keeps_the_value(self):
        line = switch_display_unit(_unit_line(), 'piece')
        assert line.display_unit is DisplayUnit.PIECE
        assert line.display_quantity == Decimal('36')
        assert line.quantity == Decimal('36')
        assert line.unit_price == Decimal('10')
        assert line_amount(line) == Decimal('360')
        assert line.remarks == ''

    def test_switch_to_same_unit_is_a_no_op(self):
        line = _unit_line()
        assert switch_display_unit(line, DisplayUnit.UNIT) is line


class TestPieceEntry:
    """A line entered in pieces that is not a whole number of boxes."""

    def test_remarks_describe_the_breakdown(self):
        line = set_display_quantity(new_line_item(1, 12, 'box'), 40)
        assert line.quantity == Decimal('40')
        assert line.remarks == '3 boxes + 4 pieces'

    def test_default_unit_label(self):
        line = set_display_quantity(new_line_item(1, 12), 40)
        assert line.remarks == '3 units + 4 pieces'

    def test_switch_to_unit_keeps_canonical_quantity(self):
        line = set_unit_price(set_display_quantity(new_line_item(1, 12, 'box'), 40), Decimal('10'))
        switched = switch_display_unit(line, 'unit')
        assert switched.quantity == Decimal('40')
        assert switched.display_quantity == Decimal('3.33')
        assert switched.unit_price == Decimal('120')
        assert line_amount(switched) == Decimal('400')
        assert switched.remarks == '3 boxes + 4 pieces'

    def test_generated_remarks_follow_the_quantity(self):
        line = set_display_quantity(new_line_item(1, 12, 'box'), 40)
        line = set_display_quantity(line, 48)
        assert line.remarks == ''
        line = set_display_quantity(line, 50)
        assert line.remarks == '4 boxes + 2 pieces'

    def test_user_remarks_are_never_overwritten(self):
        line = set_remarks(new_line_item(1, 12, 'box'), '  deliver Monday ')
        assert line.remarks == 'deliver Monday'
        line = set_display_quantity(line, 40)
        assert line.remarks == 'deliver Monday'
        line = switch_display_unit(line, 'unit')
        assert line.remarks == 'deliver Monday'

    def test_clearing_remarks_reenables_auto_remarks(self):
        line = set_remarks(new_line_item(1, 12, 'box'), 'call first')
        line = set_remarks(line, '')
        line = set_display_quantity(line, 40)
        assert line.remarks == '3 boxes + 4 pieces'


class TestDegenerateRatio:
    """Products without a usable pieces-per-unit ratio."""

    @pytest.mark.parametrize('ratio', [None, 0])
    def test_switching_changes_nothing_but_the_label(self, ratio):
        line = LineItem(product_id=1, pieces_per_unit=ratio, display_quantity=Decimal('5'),
                        quantity=Decimal('5'), unit_price=Decimal('2'))
        switched = switch_display_unit(line, 'unit')
        assert switched.display_quantity == Decimal('5')
        assert switched.quantity == Decimal('5')
        assert switched.unit_price == Decimal('2')
        assert switched.remarks == ''

    def test_unit_quantity_is_identity(self):
        line = switch_display_unit(new_line_item(1, None), 'unit')
        line = set_display_quantity(line, 3)
        assert line.quantity == Decimal('3')


class TestMissingValues:
    """None stays distinct from zero."""

    def test_cleared_quantity(self):
        line = set_display_quantity(_unit_line(), None)
        assert line.display_quantity is None
        assert line.quantity is None
        assert line.remarks == ''
        assert line_amount(line) == Decimal('0.00')

    def test_cleared_price(self):
        line = set_unit_price(_unit_line(), None)
        assert line.unit_price is None
        assert piece_price_of(line) is None
        assert line_amount(line) == Decimal('0.00')

    def test_zero_quantity_is_not_missing(self):
        line = set_display_quantity(_unit_line(), 0)
        assert line.quantity == Decimal('0')
        assert line_amount(line) == Decimal('0')


class TestRoundTrip:
    """Toggling piece -> unit -> piece."""

    @pytest.mark.parametrize('quantity,ratio,price', [
        ('36', 12, '10'),
        ('40', 12, '9.99'),
        ('7', 3, '0.35'),
        ('12.5', 5, '3.33'),
    ])
    def test_quantity_and_amount_survive(self, quantity, ratio, price):
        line = LineItem(product_id=1, pieces_per_unit=ratio, display_quantity=Decimal(quantity),
                        quantity=Decimal(quantity), unit_price=Decimal(price))
        in_units = switch_display_unit(line, 'unit')
        back = switch_display_unit(in_units, 'piece')

        assert back.quantity == line.quantity
        assert back.display_quantity == line.display_quantity
        assert abs(back.unit_price - line.unit_price) <= Decimal('0.01')
        assert line_amount(in_units) == line_amount(line)

    @pytest.mark.parametrize('units,ratio', [('3', 12), ('2.5', 4), ('1', 1)])
    def test_quantity_matches_display(self, units, ratio):
        line = _unit_line(units=units, ratio=ratio)
        assert line.quantity == to_system_quantity(line.display_quantity, line.display_unit, ratio)
        back = switch_display_unit(line, 'piece')
        assert back.quantity == to_system_quantity(back.display_quantity, back.display_unit, ratio)


class TestOrderTotals:
    """Tests for calculate_order_totals."""

    def test_empty_order(self):
        totals = calculate_order_totals([])
        assert totals.total_amount == Decimal('0.00')
        assert totals.total_weight == Decimal('0')
        assert totals.weight_display == '0 kg'
        assert totals.line_count == 0

    def test_mixed_display_units_use_piece_basis(self):
        by_piece = set_unit_price(set_display_quantity(new_line_item(1, 12), 36), 10)
        by_unit = _unit_line(units='2', price='240', product_id=2)

        totals = calculate_order_totals([by_piece, by_unit])
        assert totals.total_amount == Decimal('840')
        assert totals.line_count == 2

        all_pieces = calculate_order_totals([by_piece, switch_display_unit(by_unit, 'piece')])
        assert all_pieces.total_amount == totals.total_amount

    def test_weight(self):
        line = set_display_quantity(new_line_item(1, 12), 36)
        other = set_display_quantity(new_line_item(2, None), 10)
        totals = calculate_order_totals([line, other], {1: Decimal('2.5'), 2: None})
        assert totals.total_weight == Decimal('90')
        assert totals.weight_display == '90 kg'

    def test_weight_in_tonnes(self):
        line = set_display_quantity(new_line_item(1, 12), 500)
        totals = calculate_order_totals([line], {1: Decimal('2.5')})
        assert totals.total_weight == Decimal('1250')
        assert totals.weight_display == '1.3 t'

    def test_lines_without_price_count_as_zero(self):
        priced = _unit_line()
        unpriced = set_display_quantity(new_line_item(2, 12), 5)
        totals = calculate_order_totals([priced, unpriced])
        assert totals.total_amount == Decimal('360')
        assert totals.line_count == 2


class TestTypedPrecision:
    """Typed quantities and prices are kept to the cent."""

    def test_display_quantity_is_rounded_before_conversion(self):
        line = switch_display_unit(new_line_item(1, 12, 'box'), 'unit')
        line = set_display_quantity(line, Decimal('2.504'))
        assert line.display_quantity == Decimal('2.50')
        assert line.quantity == Decimal('30.00')
        assert line.quantity == to_system_quantity(line.display_quantity, line.display_unit, 12)
        assert line.remarks == '2 boxes + 6 pieces'

    def test_half_cent_rounds_up(self):
        line = switch_display_unit(new_line_item(1, 12, 'box'), 'unit')
        line = set_display_quantity(line, '1.005')
        assert line.display_quantity == Decimal('1.01')
        assert line.quantity == Decimal('12.12')

    def test_unit_price_is_rounded(self):
        line = set_unit_price(_unit_line(), Decimal('120.004'))
        assert line.unit_price == Decimal('120.00')
        assert line_amount(line) == Decimal('360.00')
