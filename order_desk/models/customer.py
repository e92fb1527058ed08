"""Customer model."""
from sqlalchemy import Column, String, Text, DateTime, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from order_desk.database import Base, IdType


class Customer(Base):
    """Customer placing sales orders."""

    __tablename__ = 'customer'

    id = Column(IdType, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    sales_orders = relationship('SalesOrder', back_populates='customer')

    def __repr__(self):
        return f"<Customer(id={self.id}, name='{self.name}')>"
