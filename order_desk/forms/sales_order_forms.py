"""
Forms for composing sales orders (JSON API, validated without CSRF).
"""
from decimal import Decimal

from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict
from wtforms import Field, IntegerField, StringField
from wtforms.validators import AnyOf, DataRequired, Length, NumberRange, Optional

from order_desk.utils.number_format import parse_optional_decimal

MAX_AMOUNT = Decimal('999999.99')


class DecimalInputField(Field):
    """Decimal field parsed with parse_optional_decimal ("1,234.5" style input)."""

    def _value(self):
        return '' if self.data is None else str(self.data)

    def process_formdata(self, valuelist):
        if not valuelist:
            return
        try:
            self.data = parse_optional_decimal(valuelist[0])
        except ValueError as e:
            self.data = None
            raise ValueError(str(e))


def _normalize_unit(value):
    return value.strip().lower() if isinstance(value, str) else value


def form_data(payload: dict) -> MultiDict:
    """Form data from a JSON payload; null values count as not submitted."""
    return MultiDict({key: str(value) for key, value in (payload or {}).items() if value is not None})


class SalesOrderDraftForm(FlaskForm):
    """Start a draft, optionally for a customer."""

    customer_id = IntegerField(
        'Customer',
        validators=[Optional(), NumberRange(min=1, message='Invalid customer')]
    )

    remarks = StringField(
        'Remarks',
        validators=[Optional(), Length(max=500, message='Remarks cannot exceed 500 characters')]
    )


class DraftLineForm(FlaskForm):
    """Add a product row to a draft."""

    product_id = IntegerField(
        'Product',
        validators=[
            DataRequired(message='Please select a product'),
            NumberRange(min=1, message='Invalid product')
        ]
    )

    display_unit = StringField(
        'Display unit',
        filters=[_normalize_unit],
        validators=[Optional(), AnyOf(['piece', 'unit'], message="Display unit must be 'piece' or 'unit'")]
    )

    display_quantity = DecimalInputField(
        'Quantity',
        validators=[Optional(), NumberRange(min=0, max=MAX_AMOUNT, message='Quantity must be between 0 and 999,999.99')]
    )

    unit_price = DecimalInputField(
        'Unit price',
        validators=[Optional(), NumberRange(min=0, max=MAX_AMOUNT, message='Price must be between 0 and 999,999.99')]
    )
