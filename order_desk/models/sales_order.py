"""Sales Order model."""
from sqlalchemy import Column, BigInteger, String, Numeric, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from order_desk.database import Base, IdType
import enum


class SalesOrderStatus(enum.Enum):
    """Sales order status enum."""
    DRAFT = "draft"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SalesOrder(Base):
    """Submitted sales order, expressed in piece quantity and piece price."""

    __tablename__ = 'sales_order'

    id = Column(IdType, primary_key=True, autoincrement=True)
    order_number = Column(String(32), nullable=False, unique=True, index=True)
    customer_id = Column(BigInteger, ForeignKey('customer.id'), nullable=False)
    status = Column(Enum(SalesOrderStatus, name='sales_order_status'), nullable=False, default=SalesOrderStatus.CONFIRMED)
    total_amount = Column(Numeric(14, 2), nullable=False)
    total_weight = Column(Numeric(14, 3), nullable=False, default=0)
    remarks = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    customer = relationship('Customer', back_populates='sales_orders')
    lines = relationship('SalesOrderLine', back_populates='order', cascade='all, delete-orphan', order_by='SalesOrderLine.id')

    def __repr__(self):
        return f"<SalesOrder(id={self.id}, number='{self.order_number}', total={self.total_amount})>"
