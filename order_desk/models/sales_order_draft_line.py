"""Sales Order Draft Line model."""
from sqlalchemy import Column, BigInteger, Boolean, Numeric, String, Date, ForeignKey
from sqlalchemy.orm import relationship
from order_desk.database import Base, IdType


class SalesOrderDraftLine(Base):
    """
    Sales Order Draft Line - one product row of the draft.

    `quantity` is always in pieces. `display_quantity` and `unit_price`
    are denominated in `display_unit` ('piece' or 'unit').
    """

    __tablename__ = 'sales_order_draft_line'

    id = Column(IdType, primary_key=True, autoincrement=True)
    draft_id = Column(BigInteger, ForeignKey('sales_order_draft.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(BigInteger, ForeignKey('product.id'), nullable=False, index=True)

    display_unit = Column(String(10), nullable=False, default='piece')
    display_quantity = Column(Numeric(12, 2), nullable=True)
    quantity = Column(Numeric(12, 2), nullable=True)
    unit_price = Column(Numeric(12, 2), nullable=True)
    remarks = Column(String(500), nullable=True)
    remarks_generated = Column(Boolean, nullable=False, default=False)

    color_code = Column(String(20), nullable=True)
    production_date = Column(Date, nullable=True)

    # Relationships
    draft = relationship('SalesOrderDraft', back_populates='lines')
    product = relationship('Product')

    def __repr__(self):
        return f"<SalesOrderDraftLine(id={self.id}, product_id={self.product_id}, qty={self.quantity})>"
