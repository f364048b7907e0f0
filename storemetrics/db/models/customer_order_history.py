from sqlalchemy import (Column, ForeignKey, String, UniqueConstraint, func)
from sqlalchemy.dialects.postgresql import UUID, TIMESTAMP, ARRAY
from sqlalchemy.orm import relationship

from storemetrics.db.base import Base


class CustomerOrderHistory(Base):
    """Ascending purchase dates of one customer in one store."""
    __tablename__ = 'customer_order_histories'

    id = Column(UUID(as_uuid=True), primary_key=True, server_default=func.uuid_generate_v4())
    store_id = Column(UUID(as_uuid=True), ForeignKey('stores.id', ondelete='CASCADE'), nullable=False)
    platform_customer_id = Column(String(100), nullable=False)
    order_dates = Column(ARRAY(TIMESTAMP(timezone=True)), nullable=False, default=list)
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    store = relationship("Store", back_populates="customer_histories")

    __table_args__ = (UniqueConstraint('store_id', 'platform_customer_id', name='uq_store_customer_history'),)
