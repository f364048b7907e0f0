from sqlalchemy import (Column, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint, func)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from storemetrics.db.base import Base


class LineItem(Base):
    __tablename__ = 'line_items'

    id = Column(UUID(as_uuid=True), primary_key=True, server_default=func.uuid_generate_v4())
    order_id = Column(UUID(as_uuid=True), ForeignKey('orders.id', ondelete='CASCADE'), nullable=False)
    platform_line_item_id = Column(String(100), nullable=False)
    platform_product_id = Column(String(100), nullable=False, default='')
    platform_variant_id = Column(String(100), nullable=False, default='')
    title = Column(Text, nullable=False)
    quantity = Column(Integer, nullable=False)
    paid = Column(Numeric(12, 2), nullable=False)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    product_cost = Column(Numeric(12, 2), nullable=False, default=0)
    pre_tax_gross_profit = Column(Numeric(12, 2), nullable=False, default=0)
    pre_tax_gross_margin = Column(Numeric(5, 2), nullable=False, default=0)

    order = relationship("Order", back_populates="line_items")

    __table_args__ = (UniqueConstraint('order_id', 'platform_line_item_id', name='uq_order_platform_line_item'),)
