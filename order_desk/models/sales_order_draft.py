"""Sales Order Draft model for the order being composed."""
from sqlalchemy import Column, BigInteger, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from order_desk.database import Base, IdType


class SalesOrderDraft(Base):
    """
    Sales Order Draft - form state of an order under composition.

    Lines keep both the display fields the user edits and the canonical
    piece-denominated quantity. The draft is deleted once submitted.
    """

    __tablename__ = 'sales_order_draft'

    id = Column(IdType, primary_key=True, autoincrement=True)
    customer_id = Column(BigInteger, ForeignKey('customer.id'), nullable=True, index=True)
    remarks = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    customer = relationship('Customer')
    lines = relationship(
        'SalesOrderDraftLine',
        back_populates='draft',
        cascade='all, delete-orphan',
        order_by='SalesOrderDraftLine.id'
    )

    def __repr__(self):
        return f"<SalesOrderDraft(id={self.id}, customer_id={self.customer_id})>"
