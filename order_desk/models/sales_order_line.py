"""Sales Order Line model."""
from sqlalchemy import Column, BigInteger, Numeric, String, Date, ForeignKey
from sqlalchemy.orm import relationship
from order_desk.database import Base, IdType


class SalesOrderLine(Base):
    """Sales Order Line (canonical piece quantity and piece price)."""

    __tablename__ = 'sales_order_line'

    id = Column(IdType, primary_key=True, autoincrement=True)
    order_id = Column(BigInteger, ForeignKey('sales_order.id'), nullable=False)
    product_id = Column(BigInteger, ForeignKey('product.id'), nullable=False)
    quantity = Column(Numeric(12, 2), nullable=False)
    piece_price = Column(Numeric(12, 2), nullable=False)
    line_total = Column(Numeric(14, 2), nullable=False)
    remarks = Column(String(500), nullable=True)
    color_code = Column(String(20), nullable=True)
    production_date = Column(Date, nullable=True)

    # Relationships
    order = relationship('SalesOrder', back_populates='lines')
    product = relationship('Product')

    def __repr__(self):
        return f"<SalesOrderLine(id={self.id}, product_id={self.product_id}, qty={self.quantity})>"
