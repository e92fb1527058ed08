"""Models package - exports all SQLAlchemy models."""
from order_desk.models.product import Product
from order_desk.models.customer import Customer
from order_desk.models.sales_order_draft import SalesOrderDraft
from order_desk.models.sales_order_draft_line import SalesOrderDraftLine
from order_desk.models.sales_order import SalesOrder, SalesOrderStatus
from order_desk.models.sales_order_line import SalesOrderLine

__all__ = [
    'Product', 'Customer',
    'SalesOrderDraft', 'SalesOrderDraftLine',
    'SalesOrder', 'SalesOrderStatus', 'SalesOrderLine',
]
