from datetime import datetime
from typing import Optional
import strawberry
from strawberry.scalars import ID


@strawberry.type
class Store:
    id: ID
    name: str
    platform: str
    shop_domain: str
    is_active: bool
    is_connected: bool
    syncing: bool
    last_sync_at: Optional[datetime] = None
    currency: Optional[str] = None
