from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Dict


@dataclass
class FeedPage:
    """One page of a paginated platform listing."""
    items: List[Dict] = field(default_factory=list)
    # Opaque token for the following page, None on the last page
    next_cursor: Optional[str] = None


class EcommercePlatformConnector(ABC):
    """Abstract base class for e-commerce platform connectors."""

    @abstractmethod
    async def get_platform_name(self) -> str:
        """Get the name of the platform this connector handles."""
        pass

    @abstractmethod
    async def fetch_orders_page(
        self,
        access_token: str,
        shop_domain: str,
        limit: int,
        created_at_min: Optional[datetime] = None,
        created_at_max: Optional[datetime] = None,
        cursor: Optional[str] = None,
    ) -> FeedPage:
        """
        Fetch one page of orders created inside the given bounds, oldest first.

        When `cursor` is set the time bounds are ignored; the cursor already
        encodes the original query.

        Raises:
            FeedError if the platform request fails after retries
        """
        pass

    @abstractmethod
    async def fetch_products_page(
        self,
        access_token: str,
        shop_domain: str,
        limit: int,
        updated_at_min: Optional[datetime] = None,
        updated_at_max: Optional[datetime] = None,
        cursor: Optional[str] = None,
    ) -> FeedPage:
        """Fetch one page of products (with nested variants)."""
        pass

    @abstractmethod
    async def map_order_to_db_model(self, platform_order_data: Dict) -> Dict:
        """Transform platform order data (including line items) into our field names."""
        pass

    @abstractmethod
    async def map_product_to_db_model(self, platform_product_data: Dict) -> Dict:
        """Transform platform product data (including variants) into our field names."""
        pass
