from sqlalchemy import (Column, ForeignKey, Numeric, String, Text, UniqueConstraint, Index, func)
from sqlalchemy.dialects.postgresql import UUID, TIMESTAMP
from sqlalchemy.orm import relationship

from storemetrics.db.base import Base


class Order(Base):
    __tablename__ = 'orders'

    id = Column(UUID(as_uuid=True), primary_key=True, server_default=func.uuid_generate_v4())
    store_id = Column(UUID(as_uuid=True), ForeignKey('stores.id', ondelete='CASCADE'), nullable=False)
    platform_order_id = Column(String(100), nullable=False)
    order_number = Column(String(100), nullable=False)
    source = Column(String(100), nullable=True)
    ordered_at = Column(TIMESTAMP(timezone=True), nullable=False)
    customer_name = Column(Text, nullable=False, default='Unknown')
    # Empty string for guest checkouts
    platform_customer_id = Column(String(100), nullable=False, default='')
    fulfillment_status = Column(String(50), nullable=False, default='Unfulfilled')
    currency = Column(String(10), nullable=True)
    paid = Column(Numeric(12, 2), nullable=False, default=0)
    tax = Column(Numeric(12, 2), nullable=False, default=0)
    shipping_paid = Column(Numeric(12, 2), nullable=False, default=0)
    shipping_country = Column(String(100), nullable=False, default='N/A')
    shipping_region = Column(String(100), nullable=False, default='N/A')
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    cogs = Column(Numeric(12, 2), nullable=False, default=0)
    gross_profit = Column(Numeric(12, 2), nullable=False, default=0)
    synced_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    store = relationship("Store", back_populates="orders")
    line_items = relationship("LineItem", back_populates="order", cascade="all, delete-orphan", lazy="selectin")

    __table_args__ = (
        UniqueConstraint('store_id', 'platform_order_id', name='uq_store_platform_order'),
        Index('idx_orders_store_ordered_at', 'store_id', 'ordered_at'),
    )
