from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel
from typing import Optional
import uuid

class StoreData(BaseModel):
    """Store row as seen by the sync pipeline. `access_token` is already decrypted."""
    id: uuid.UUID
    name: str = ""
    platform: str = "shopify"
    shop_domain: str = ""
    access_token: str = ""
    currency: Optional[str] = None
    is_active: bool = True
    syncing: bool = False
    last_sync_at: Optional[datetime] = None
    cogs_ratio: Optional[Decimal] = None

    model_config = {
        "from_attributes": True
    }

    @property
    def is_connected(self) -> bool:
        return bool(self.shop_domain and self.access_token)
