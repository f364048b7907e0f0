from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from storemetrics.schemas.metrics import MetricData
from storemetrics.schemas.store import StoreData
from storemetrics.schemas.sync import OrderData, ProductData


class SyncRepository(ABC):
    """
    Data-access handle used by the sync pipeline and the metrics read service.

    Writes are staged until `commit()`, except for the sync lock which is
    committed immediately so other workers see it.
    """

    # --- Stores ---

    @abstractmethod
    async def get_store(self, store_id: UUID) -> Optional[StoreData]:
        pass

    @abstractmethod
    async def try_acquire_sync_lock(self, store_id: UUID) -> bool:
        """Set `syncing` if it is clear. Returns False when another sync holds it."""
        pass

    @abstractmethod
    async def release_sync_lock(self, store_id: UUID) -> None:
        pass

    @abstractmethod
    async def set_last_sync(self, store_id: UUID, synced_at: datetime) -> None:
        pass

    @abstractmethod
    async def set_currency_if_missing(self, store_id: UUID, currency: str) -> None:
        pass

    @abstractmethod
    async def list_syncable_store_ids(self) -> List[UUID]:
        """Active stores with credentials, for the periodic resync."""
        pass

    @abstractmethod
    async def purge_store_data(self, store_id: UUID) -> None:
        """Clear credentials and delete every order, product, history row and metric of the store."""
        pass

    # --- Orders & catalog ---

    @abstractmethod
    async def insert_order(self, store_id: UUID, order: OrderData) -> bool:
        """Create the order with its line items. Returns False if it already existed."""
        pass

    @abstractmethod
    async def upsert_product(self, store_id: UUID, product: ProductData) -> None:
        pass

    @abstractmethod
    async def list_orders(
        self,
        store_id: UUID,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[OrderData]:
        """Orders with `start <= ordered_at <= end`, oldest first."""
        pass

    @abstractmethod
    async def get_product_titles(self, store_id: UUID, platform_product_ids: Iterable[str]) -> Dict[str, str]:
        pass

    # --- Customer history ---

    @abstractmethod
    async def load_customer_history(
        self,
        store_id: UUID,
        customer_ids: Optional[Iterable[str]] = None,
    ) -> Dict[str, List[datetime]]:
        """Purchase dates per customer; all customers of the store when `customer_ids` is None."""
        pass

    @abstractmethod
    async def list_customer_order_dates(self, store_id: UUID, customer_ids: Iterable[str]) -> Dict[str, List[datetime]]:
        """Ascending `ordered_at` of every stored order of the given customers, read from the orders table."""
        pass

    @abstractmethod
    async def replace_customer_history(self, store_id: UUID, history: Dict[str, List[datetime]]) -> None:
        pass

    @abstractmethod
    async def save_customer_history(self, store_id: UUID, history: Dict[str, List[datetime]]) -> None:
        """Upsert only the given customers."""
        pass

    # --- Metrics ---

    @abstractmethod
    async def delete_metrics(self, store_id: UUID, start_date: date, end_date: date) -> int:
        pass

    @abstractmethod
    async def upsert_metrics(self, store_id: UUID, metrics: List[MetricData]) -> int:
        pass

    @abstractmethod
    async def list_metrics(self, store_id: UUID, start_date: date, end_date: date) -> List[MetricData]:
        pass

    # --- Unit of work ---

    @abstractmethod
    async def commit(self) -> None:
        pass

    @abstractmethod
    async def rollback(self) -> None:
        pass
