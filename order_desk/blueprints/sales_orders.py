"""Sales orders blueprint - JSON endpoints for composing and submitting orders."""
from datetime import date, datetime
from decimal import Decimal
from functools import wraps
from typing import Any, Dict, Union

from flask import Blueprint, current_app, jsonify, request, Response

from order_desk.blueprints.metrics import record_line_edit, record_submission, submission_rejections_total
from order_desk.database import get_session
from order_desk.exceptions import BusinessLogicError, OrderDeskError, ValidationError
from order_desk.forms.sales_order_forms import DraftLineForm, SalesOrderDraftForm, form_data
from order_desk.models import SalesOrder, SalesOrderDraft
from order_desk.services import sales_order_draft_service, sales_order_service
from order_desk.services.unit_conversion import DisplayUnit
from order_desk.utils.formatters import format_money, format_weight
from order_desk.utils.number_format import parse_optional_date, parse_optional_decimal

sales_orders_bp = Blueprint('sales_orders', __name__, url_prefix='/sales-orders')

EDIT_KINDS = {
    'display_unit': 'unit',
    'quantity_text': 'quantity',
    'display_quantity': 'quantity',
    'unit_price': 'price',
    'remarks': 'remarks',
    'color_code': 'details',
    'production_date': 'details',
}

TEXT_LIMITS = {'quantity_text': 50, 'remarks': 500, 'color_code': 20}


def _serialize_value(val) -> Any:
    """JSON-safe value: Decimals and dates as strings."""
    if isinstance(val, Decimal):
        return str(val)
    if isinstance(val, (date, datetime)):
        return val.isoformat()
    if isinstance(val, dict):
        return {k: _serialize_value(v) for k, v in val.items()}
    if isinstance(val, list):
        return [_serialize_value(v) for v in val]
    return val


def _payload() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    if payload is None:
        payload = request.form.to_dict()
    if not isinstance(payload, dict):
        raise ValidationError({'body': ['Expected a JSON object']})
    return payload


def _draft_response(draft: SalesOrderDraft, totals: Dict[str, Any], status_code: int = 200) -> Response:
    body = {
        'status': 'ok',
        'draft': {
            'id': draft.id,
            'customer_id': draft.customer_id,
            'remarks': draft.remarks,
            **totals
        }
    }
    return jsonify(_serialize_value(body)), status_code


def _order_response(order: SalesOrder, status_code: int = 200) -> Response:
    body = {
        'status': 'ok',
        'order': {
            'id': order.id,
            'order_number': order.order_number,
            'customer_id': order.customer_id,
            'status': order.status.value,
            'total_amount': order.total_amount,
            'total_display': format_money(order.total_amount),
            'total_weight': order.total_weight,
            'weight_display': format_weight(order.total_weight),
            'remarks': order.remarks,
            'created_at': order.created_at,
            'lines': [
                {
                    'id': line.id,
                    'product_id': line.product_id,
                    'quantity': line.quantity,
                    'piece_price': line.piece_price,
                    'line_total': line.line_total,
                    'remarks': line.remarks,
                    'color_code': line.color_code,
                    'production_date': line.production_date,
                }
                for line in order.lines
            ]
        }
    }
    return jsonify(_serialize_value(body)), status_code


def transactional(f):
    """Commit after the view succeeds, roll back and re-raise on error."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        db_session = get_session()
        try:
            response = f(db_session, *args, **kwargs)
            db_session.commit()
            return response
        except OrderDeskError:
            db_session.rollback()
            raise
        except ValueError as e:
            db_session.rollback()
            current_app.logger.warning(f"Validation error in {f.__name__}: {str(e)}")
            raise BusinessLogicError(str(e))
        except Exception as e:
            db_session.rollback()
            current_app.logger.error(f"Error in {f.__name__}: {str(e)}", exc_info=True)
            raise
    return decorated_function


def _parse_line_changes(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Translate a PATCH body into draft service changes, collecting field errors."""
    changes: Dict[str, Any] = {}
    errors: Dict[str, list] = {}

    for field, limit in TEXT_LIMITS.items():
        value = payload.get(field)
        if value is not None and len(str(value)) > limit:
            errors.setdefault(field, []).append(f'Cannot exceed {limit} characters')

    for field in payload:
        if field not in EDIT_KINDS:
            errors.setdefault(field, []).append('Unknown field')

    try:
        if payload.get('display_unit') is not None:
            changes['display_unit'] = DisplayUnit.parse(payload['display_unit'])
    except ValueError as e:
        errors.setdefault('display_unit', []).append(str(e))

    if payload.get('quantity_text'):
        changes['quantity_text'] = str(payload['quantity_text'])

    for field in ('display_quantity', 'unit_price'):
        if field in payload:
            try:
                changes[field] = parse_optional_decimal(payload[field])
            except ValueError as e:
                errors.setdefault(field, []).append(str(e))

    for field in ('remarks', 'color_code'):
        if field in payload:
            changes[field] = None if payload[field] is None else str(payload[field])

    if 'production_date' in payload:
        try:
            changes['production_date'] = parse_optional_date(payload['production_date'])
        except ValueError as e:
            errors.setdefault('production_date', []).append(str(e))

    if errors:
        raise ValidationError(errors)
    return changes


@sales_orders_bp.route('/drafts', methods=['POST'])
@transactional
def create_draft(db_session) -> Union[str, Response]:
    """Start composing a sales order."""
    form = SalesOrderDraftForm(formdata=form_data(_payload()))
    if not form.validate():
        raise ValidationError(form.errors)

    draft = sales_order_draft_service.create_draft(
        db_session,
        customer_id=form.customer_id.data,
        remarks=form.remarks.data
    )
    return _draft_response(draft, sales_order_draft_service.calculate_draft_totals(db_session, draft), 201)


@sales_orders_bp.route('/drafts/<int:draft_id>', methods=['GET'])
@transactional
def get_draft(db_session, draft_id: int) -> Union[str, Response]:
    """Draft with lines and totals."""
    draft, totals = sales_order_draft_service.get_draft_with_totals(db_session, draft_id)
    return _draft_response(draft, totals)


@sales_orders_bp.route('/drafts/<int:draft_id>', methods=['PATCH'])
@transactional
def update_draft(db_session, draft_id: int) -> Union[str, Response]:
    """Change the draft's customer or remarks."""
    form = SalesOrderDraftForm(formdata=form_data(_payload()))
    if not form.validate():
        raise ValidationError(form.errors)

    sales_order_draft_service.update_draft_header(
        db_session, draft_id,
        customer_id=form.customer_id.data,
        remarks=form.remarks.data
    )
    draft, totals = sales_order_draft_service.get_draft_with_totals(db_session, draft_id)
    return _draft_response(draft, totals)


@sales_orders_bp.route('/drafts/<int:draft_id>/lines', methods=['POST'])
@transactional
def add_line(db_session, draft_id: int) -> Union[str, Response]:
    """Add a product row to the draft."""
    form = DraftLineForm(formdata=form_data(_payload()))
    if not form.validate():
        raise ValidationError(form.errors)

    line = sales_order_draft_service.add_line(
        db_session, draft_id, form.product_id.data,
        display_unit=form.display_unit.data or None,
        display_quantity=form.display_quantity.data,
        unit_price=form.unit_price.data,
        max_lines=current_app.config.get('MAX_ORDER_LINES', 100)
    )
    current_app.logger.info(f"Added product {line.product_id} to draft {draft_id} (line {line.id})")

    draft, totals = sales_order_draft_service.get_draft_with_totals(db_session, draft_id)
    return _draft_response(draft, totals, 201)


@sales_orders_bp.route('/drafts/<int:draft_id>/lines/<int:line_id>', methods=['PATCH'])
@transactional
def update_line(db_session, draft_id: int, line_id: int) -> Union[str, Response]:
    """Edit a line's unit, quantity, price, remarks or details."""
    changes = _parse_line_changes(_payload())

    sales_order_draft_service.update_line(db_session, draft_id, line_id, changes)
    record_line_edit(EDIT_KINDS[field] for field in changes)

    draft, totals = sales_order_draft_service.get_draft_with_totals(db_session, draft_id)
    return _draft_response(draft, totals)


@sales_orders_bp.route('/drafts/<int:draft_id>/lines/<int:line_id>', methods=['DELETE'])
@transactional
def remove_line(db_session, draft_id: int, line_id: int) -> Union[str, Response]:
    """Remove a line from the draft."""
    sales_order_draft_service.remove_line(db_session, draft_id, line_id)
    current_app.logger.info(f"Removed line {line_id} from draft {draft_id}")

    draft, totals = sales_order_draft_service.get_draft_with_totals(db_session, draft_id)
    return _draft_response(draft, totals)


@sales_orders_bp.route('/drafts/<int:draft_id>/clear', methods=['POST'])
@transactional
def clear_draft(db_session, draft_id: int) -> Union[str, Response]:
    """Remove all lines from the draft."""
    sales_order_draft_service.clear_draft(db_session, draft_id)
    draft, totals = sales_order_draft_service.get_draft_with_totals(db_session, draft_id)
    return _draft_response(draft, totals)


@sales_orders_bp.route('/drafts/<int:draft_id>/submit', methods=['POST'])
@transactional
def submit_draft(db_session, draft_id: int) -> Union[str, Response]:
    """Submit the draft as a confirmed sales order."""
    try:
        order = sales_order_service.submit_draft(
            db_session, draft_id,
            prefix=current_app.config.get('SALES_ORDER_PREFIX', 'SO'),
            number_length=current_app.config.get('SALES_ORDER_NUMBER_LENGTH', 4),
            max_lines=current_app.config.get('MAX_ORDER_LINES', 100)
        )
    except BusinessLogicError:
        submission_rejections_total.inc()
        raise

    record_submission(len(order.lines))
    current_app.logger.info(f"Sales order {order.order_number} created from draft {draft_id}")
    return _order_response(order, 201)


@sales_orders_bp.route('/<int:order_id>', methods=['GET'])
@transactional
def get_order(db_session, order_id: int) -> Union[str, Response]:
    """A submitted sales order."""
    return _order_response(sales_order_service.get_order(db_session, order_id))
