"""Sales Order Draft Service - persistent order composition.

Every line mutation goes through the line-item transitions, so stored rows
always keep `quantity` (pieces) consistent with the displayed quantity.
Functions only flush; committing is up to the caller.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.orm import Session

from order_desk.exceptions import BusinessLogicError, NotFoundError
from order_desk.models import Customer, SalesOrderDraft, SalesOrderDraftLine
from order_desk.services import catalog_service
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
from order_desk.services.piece_display import calculate_piece_display, parse_quantity_text
from order_desk.services.unit_conversion import DisplayUnit, Number, pack_ratio, to_display_quantity

logger = logging.getLogger(__name__)

DEFAULT_MAX_LINES = 100


def _get_customer(session: Session, customer_id: int) -> Customer:
    customer = session.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise NotFoundError('Customer not found.')
    if not customer.active:
        raise BusinessLogicError(f'Customer "{customer.name}" is not active.')
    return customer


def create_draft(session: Session, customer_id: Optional[int] = None, remarks: Optional[str] = None) -> SalesOrderDraft:
    """Start composing a new sales order."""
    if customer_id is not None:
        _get_customer(session, customer_id)

    draft = SalesOrderDraft(customer_id=customer_id, remarks=(remarks or '').strip() or None)
    session.add(draft)
    session.flush()
    logger.info(f"Created sales order draft {draft.id}")
    return draft


def get_draft(session: Session, draft_id: int) -> SalesOrderDraft:
    """Load a draft or raise NotFoundError."""
    draft = session.query(SalesOrderDraft).filter(SalesOrderDraft.id == draft_id).first()
    if not draft:
        raise NotFoundError('Draft not found.')
    return draft


def update_draft_header(
    session: Session,
    draft_id: int,
    customer_id: Optional[int] = None,
    remarks: Optional[str] = None
) -> SalesOrderDraft:
    """Change the customer and/or order remarks of a draft."""
    draft = get_draft(session, draft_id)
    if customer_id is not None:
        _get_customer(session, customer_id)
        draft.customer_id = customer_id
    if remarks is not None:
        draft.remarks = remarks.strip() or None
    draft.updated_at = datetime.now()
    session.flush()
    return draft


def _get_line(session: Session, draft_id: int, line_id: int) -> SalesOrderDraftLine:
    line = session.query(SalesOrderDraftLine).filter(
        SalesOrderDraftLine.id == line_id,
        SalesOrderDraftLine.draft_id == draft_id
    ).first()
    if not line:
        raise NotFoundError('Line not found in this draft.')
    return line


def to_line_item(line: SalesOrderDraftLine, snapshot: catalog_service.ProductSnapshot) -> LineItem:
    """Build the immutable line record from a stored row."""
    return LineItem(
        product_id=line.product_id,
        pieces_per_unit=snapshot.pieces_per_unit,
        display_unit=line.display_unit or DisplayUnit.PIECE,
        display_quantity=line.display_quantity,
        quantity=line.quantity,
        unit_price=line.unit_price,
        remarks=line.remarks or '',
        remarks_generated=bool(line.remarks_generated),
        unit_label=snapshot.unit
    )


def _store_line_item(line: SalesOrderDraftLine, item: LineItem) -> None:
    line.display_unit = item.display_unit.value
    line.display_quantity = item.display_quantity
    line.quantity = item.quantity
    line.unit_price = item.unit_price
    line.remarks = item.remarks or None
    line.remarks_generated = item.remarks_generated


def _apply_quantity_text(item: LineItem, text: str) -> LineItem:
    """Apply typed text like "3 boxes + 4 pieces" to a line."""
    pieces = parse_quantity_text(text, item.pieces_per_unit, item.unit_label)
    ratio = pack_ratio(item.pieces_per_unit)

    # Stay in units only when the total is a whole number of units
    if item.display_unit is DisplayUnit.UNIT and ratio is not None and pieces % ratio == 0:
        return set_display_quantity(item, to_display_quantity(pieces, DisplayUnit.UNIT, ratio))
    return set_display_quantity(switch_display_unit(item, DisplayUnit.PIECE), pieces)


def apply_line_changes(item: LineItem, changes: Dict[str, Any]) -> LineItem:
    """
    Apply engine-level edits to a line item.

    Order: display unit toggle, typed quantity text or numeric quantity,
    price, remarks. Keys absent from `changes` are left alone; a key
    present with None clears the value.
    """
    if changes.get('display_unit') is not None:
        item = switch_display_unit(item, changes['display_unit'])
    if changes.get('quantity_text'):
        item = _apply_quantity_text(item, changes['quantity_text'])
    elif 'display_quantity' in changes:
        item = set_display_quantity(item, changes['display_quantity'])
    if 'unit_price' in changes:
        item = set_unit_price(item, changes['unit_price'])
    if 'remarks' in changes:
        item = set_remarks(item, changes['remarks'])
    return item


def add_line(
    session: Session,
    draft_id: int,
    product_id: int,
    display_unit: Optional[str] = None,
    display_quantity: Optional[Number] = None,
    unit_price: Optional[Number] = None,
    max_lines: int = DEFAULT_MAX_LINES
) -> SalesOrderDraftLine:
    """Add a product row (one piece by default) and apply any initial values."""
    draft = get_draft(session, draft_id)
    if len(draft.lines) >= max_lines:
        raise BusinessLogicError(f'An order cannot have more than {max_lines} lines.')

    snapshot = catalog_service.get_product_snapshot(session, product_id)
    item = new_line_item(product_id, snapshot.pieces_per_unit, snapshot.unit)

    changes: Dict[str, Any] = {}
    if display_unit is not None:
        changes['display_unit'] = display_unit
    if display_quantity is not None:
        changes['display_quantity'] = display_quantity
    if unit_price is not None:
        changes['unit_price'] = unit_price
    item = apply_line_changes(item, changes)

    line = SalesOrderDraftLine(draft_id=draft.id, product_id=product_id)
    _store_line_item(line, item)
    draft.lines.append(line)
    draft.updated_at = datetime.now()
    session.flush()
    return line


def update_line(session: Session, draft_id: int, line_id: int, changes: Dict[str, Any]) -> SalesOrderDraftLine:
    """
    Edit one draft line.

    Recognised keys: display_unit, quantity_text, display_quantity,
    unit_price, remarks, color_code, production_date.
    """
    draft = get_draft(session, draft_id)
    line = _get_line(session, draft.id, line_id)
    snapshot = catalog_service.get_product_snapshot(session, line.product_id, require_active=False)

    item = apply_line_changes(to_line_item(line, snapshot), changes)
    _store_line_item(line, item)

    if 'color_code' in changes:
        line.color_code = (changes['color_code'] or '').strip() or None
    if 'production_date' in changes:
        production_date = changes['production_date']
        if production_date is not None and not isinstance(production_date, date):
            raise BusinessLogicError('Production date must be a date.')
        line.production_date = production_date

    draft.updated_at = datetime.now()
    session.flush()
    return line


def remove_line(session: Session, draft_id: int, line_id: int) -> None:
    """Remove a line from the draft."""
    draft = get_draft(session, draft_id)
    line = _get_line(session, draft.id, line_id)
    draft.lines.remove(line)
    draft.updated_at = datetime.now()
    session.flush()


def clear_draft(session: Session, draft_id: int) -> None:
    """Remove all lines from the draft."""
    draft = get_draft(session, draft_id)
    draft.lines.clear()
    draft.updated_at = datetime.now()
    session.flush()


def calculate_draft_totals(session: Session, draft: SalesOrderDraft) -> Dict[str, Any]:
    """Line details plus order totals, all amounts in piece basis."""
    lines_details = []
    items = []

    for line in draft.lines:
        snapshot = catalog_service.get_product_snapshot(session, line.product_id, require_active=False)
        item = to_line_item(line, snapshot)
        items.append(item)

        breakdown = None
        if item.quantity is not None and item.quantity >= 0:
            breakdown = calculate_piece_display(item.quantity, item.pieces_per_unit, item.unit_label).display_text

        lines_details.append({
            'line_id': line.id,
            'product_id': line.product_id,
            'product_name': snapshot.name,
            'specification': snapshot.specification,
            'unit': snapshot.unit,
            'pieces_per_unit': snapshot.pieces_per_unit,
            'display_unit': item.display_unit.value,
            'display_quantity': item.display_quantity,
            'quantity': item.quantity,
            'quantity_breakdown': breakdown,
            'unit_price': item.unit_price,
            'piece_price': piece_price_of(item),
            'line_amount': line_amount(item),
            'remarks': item.remarks,
            'color_code': line.color_code,
            'production_date': line.production_date,
        })

    weights = catalog_service.get_weights_per_piece(session, [item.product_id for item in items])
    totals = calculate_order_totals(items, weights)

    return {
        'total_amount': totals.total_amount,
        'total_weight': totals.total_weight,
        'weight_display': totals.weight_display,
        'line_count': totals.line_count,
        'lines': lines_details
    }


def get_draft_with_totals(session: Session, draft_id: int) -> Tuple[SalesOrderDraft, Dict[str, Any]]:
    """Get draft with totals dictionary."""
    draft = get_draft(session, draft_id)
    return draft, calculate_draft_totals(session, draft)

