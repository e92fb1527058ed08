"""Sales order submission: turns a draft into a confirmed order in piece basis."""

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from order_desk.exceptions import BusinessLogicError, NotFoundError
from order_desk.models import Customer, SalesOrder, SalesOrderLine, SalesOrderStatus
from order_desk.services import catalog_service
from order_desk.services import sales_order_draft_service
from order_desk.services.line_items import calculate_order_totals, line_amount, piece_price_of

logger = logging.getLogger(__name__)

MIN_VALUE = Decimal('0.01')
MAX_VALUE = Decimal('999999.99')


def generate_order_number(session: Session, today: Optional[date] = None, prefix: str = 'SO', number_length: int = 4) -> str:
    """
    Next order number for the day: {prefix}{YYYYMMDD}{sequence}.

    The sequence continues from the highest number already issued today.
    """
    today = today or date.today()
    day_prefix = f"{prefix}{today.strftime('%Y%m%d')}"

    last = session.query(SalesOrder.order_number).filter(
        SalesOrder.order_number.like(f"{day_prefix}%")
    ).order_by(SalesOrder.order_number.desc()).first()

    sequence = 1
    if last:
        try:
            sequence = int(last.order_number[len(day_prefix):]) + 1
        except ValueError:
            logger.warning(f"Unexpected order number format: {last.order_number}")

    return f"{day_prefix}{str(sequence).zfill(number_length)}"


def validate_draft(session: Session, draft, max_lines: int = 100) -> List[str]:
    """Return the list of problems preventing submission (empty when valid)."""
    errors = []

    if draft.customer_id is None:
        errors.append('Please select a customer.')
    else:
        customer = session.query(Customer).filter(Customer.id == draft.customer_id).first()
        if not customer or not customer.active:
            errors.append('The selected customer is not available.')

    if not draft.lines:
        errors.append('Add at least one line to the order.')
    elif len(draft.lines) > max_lines:
        errors.append(f'An order cannot have more than {max_lines} lines.')

    seen = set()
    for position, line in enumerate(draft.lines, start=1):
        snapshot = catalog_service.get_product_snapshot(session, line.product_id, require_active=False)
        item = sales_order_draft_service.to_line_item(line, snapshot)
        piece_price = piece_price_of(item)

        if item.quantity is None or not (MIN_VALUE <= item.quantity <= MAX_VALUE):
            errors.append(f'Line {position}: quantity must be between 0.01 and 999,999.99 pieces.')
        if piece_price is None:
            errors.append(f'Line {position}: price is required.')
        elif not (MIN_VALUE <= piece_price <= MAX_VALUE):
            errors.append(f'Line {position}: price per piece must be between 0.01 and 999,999.99.')

        key = (line.product_id, line.color_code or '', line.production_date)
        if key in seen:
            errors.append(f'Line {position}: duplicate product, color code and production date.')
        seen.add(key)

    return errors


def submit_draft(
    session: Session,
    draft_id: int,
    today: Optional[date] = None,
    prefix: str = 'SO',
    number_length: int = 4,
    max_lines: int = 100
) -> SalesOrder:
    """
    Validate a draft and create the sales order from it.

    Order lines carry the canonical piece quantity and piece price; the
    draft is deleted. Only flushes.

    Raises:
        NotFoundError: unknown draft.
        BusinessLogicError: the draft is not valid for submission.
    """
    draft = sales_order_draft_service.get_draft(session, draft_id)

    errors = validate_draft(session, draft, max_lines=max_lines)
    if errors:
        raise BusinessLogicError(errors[0], payload={'errors': errors})

    items = []
    order_lines = []
    for line in draft.lines:
        snapshot = catalog_service.get_product_snapshot(session, line.product_id, require_active=False)
        item = sales_order_draft_service.to_line_item(line, snapshot)
        items.append(item)
        order_lines.append(SalesOrderLine(
            product_id=line.product_id,
            quantity=item.quantity,
            piece_price=piece_price_of(item),
            line_total=line_amount(item),
            remarks=item.remarks or None,
            color_code=line.color_code,
            production_date=line.production_date
        ))

    weights = catalog_service.get_weights_per_piece(session, [item.product_id for item in items])
    totals = calculate_order_totals(items, weights)

    order = SalesOrder(
        order_number=generate_order_number(session, today, prefix, number_length),
        customer_id=draft.customer_id,
        status=SalesOrderStatus.CONFIRMED,
        total_amount=totals.total_amount,
        total_weight=totals.total_weight,
        remarks=draft.remarks,
        lines=order_lines
    )
    session.add(order)
    session.delete(draft)
    session.flush()

    logger.info(
        f"Submitted draft {draft_id} as order {order.order_number} "
        f"({totals.line_count} lines, total {totals.total_amount})"
    )
    return order


def get_order(session: Session, order_id: int) -> SalesOrder:
    """Load a submitted order or raise NotFoundError."""
    order = session.query(SalesOrder).filter(SalesOrder.id == order_id).first()
    if not order:
        raise NotFoundError('Sales order not found.')
    return order
