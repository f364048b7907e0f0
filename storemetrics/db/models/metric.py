from sqlalchemy import Column, Date, Numeric, ForeignKey, Index, String, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID, TIMESTAMP
from uuid import uuid4
from storemetrics.db.base import Base
from sqlalchemy.orm import relationship

class Metric(Base):
    """One value of one metric type for one store and day."""
    __tablename__ = "metrics"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    store_id = Column(UUID(as_uuid=True), ForeignKey("stores.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    metric_type = Column(String(64), nullable=False)
    value = Column(Numeric(precision=18, scale=4), nullable=False, default=0)
    description = Column(Text, nullable=False, default="")
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    store = relationship("Store", back_populates="metrics")

    __table_args__ = (
        UniqueConstraint('store_id', 'date', 'metric_type', name='uq_store_date_metric_type'),
        Index('idx_metrics_store_date', 'store_id', 'date'),
    )

    def __repr__(self):
        return f"<Metric(store_id={self.store_id}, date={self.date}, metric_type={self.metric_type})>"
