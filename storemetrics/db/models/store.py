import uuid
from sqlalchemy import Column, String, DateTime, Boolean, Numeric, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.ext.hybrid import hybrid_property
from storemetrics.db.base import Base
from storemetrics.core.security import encrypt_token, decrypt_token

class Store(Base):
    __tablename__ = "stores"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False, default="")
    platform = Column(String(50), nullable=False, default="shopify", index=True)
    currency = Column(String(10), nullable=True)
    shop_domain = Column(String(255), nullable=False, default="")
    _access_token = Column('access_token', Text, nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=True)
    syncing = Column(Boolean, nullable=False, default=False, server_default="false")
    last_sync_at = Column(DateTime(timezone=True), nullable=True)
    # Per-store override of settings.DEFAULT_COGS_RATIO
    cogs_ratio = Column(Numeric(5, 4), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    products = relationship("Product", back_populates="store", cascade="all, delete-orphan")
    orders = relationship("Order", back_populates="store", cascade="all, delete-orphan")
    metrics = relationship("Metric", back_populates="store", cascade="all, delete-orphan")
    customer_histories = relationship("CustomerOrderHistory", back_populates="store", cascade="all, delete-orphan")

    @hybrid_property
    def access_token(self) -> str:
        """
        Decrypt and return the access token.
        Returns empty string if the store is disconnected or decryption fails.
        """
        decrypted = decrypt_token(self._access_token)
        return decrypted if decrypted is not None else ""

    @access_token.setter
    def access_token(self, token: str) -> None:
        """
        Encrypt and store the access token.
        """
        if token is None:
            self._access_token = ""
        else:
            self._access_token = encrypt_token(token)

    @property
    def is_connected(self) -> bool:
        return bool(self.shop_domain and self._access_token)
