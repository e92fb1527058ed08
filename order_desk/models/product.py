"""Product model."""
from sqlalchemy import Column, Integer, String, Boolean, Numeric, DateTime
from sqlalchemy.sql import func
from order_desk.database import Base, IdType


class Product(Base):
    """
    Catalog product sold by the piece and packed in units.

    `unit` is the pack label (e.g. "box") and `pieces_per_unit` the pack
    ratio. `weight` is kilograms per piece. Both may be missing for
    products without a packing relationship or weight data.
    """

    __tablename__ = 'product'

    id = Column(IdType, primary_key=True, autoincrement=True)
    code = Column(String(50), nullable=False, unique=True)
    name = Column(String(200), nullable=False)
    specification = Column(String(200), nullable=True)  # e.g. "600x600"
    unit = Column(String(20), nullable=False, default='unit', server_default='unit')
    pieces_per_unit = Column(Integer, nullable=True)
    weight = Column(Numeric(10, 3), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Product(id={self.id}, code='{self.code}', pieces_per_unit={self.pieces_per_unit})>"
