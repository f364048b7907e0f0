import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from uuid import UUID

from storemetrics.core.config import get_settings
from storemetrics.core.exceptions import StoreNotConnectedError, StoreNotFoundError, SyncInProgressError
from storemetrics.crud.sync_repository import SyncRepository
from storemetrics.schemas.store import StoreData
from storemetrics.schemas.sync import SyncResult
from storemetrics.services.analytics.customer_history import CustomerHistoryIndex
from storemetrics.services.analytics.metric_aggregation import AggregationMode, MetricAggregationEngine, utc_day
from storemetrics.services.platform_connector import EcommercePlatformConnector, get_connector
from storemetrics.services.sync.catalog_ingestion import CatalogIngestionEngine
from storemetrics.services.sync.order_ingestion import OrderIngestionEngine

logger = logging.getLogger(__name__)


def _utc(moment: Optional[datetime]) -> datetime:
    if moment is None:
        return datetime.now(timezone.utc)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


class SyncOrchestrator:
    """
    Runs the sync steps for one store: catalog, orders, customer history, metrics.

    Only one sync per store runs at a time; the `syncing` flag on the store is
    the lock. `last_sync_at` moves forward only when every step succeeded.
    """

    def __init__(
        self,
        repository: SyncRepository,
        connector_factory: Callable[[str], EcommercePlatformConnector] = get_connector,
    ):
        self.repository = repository
        self.connector_factory = connector_factory
        self.settings = get_settings()

    async def _load_store(self, store_id: UUID) -> StoreData:
        store = await self.repository.get_store(store_id)
        if not store:
            raise StoreNotFoundError(store_id)
        if not store.is_connected:
            raise StoreNotConnectedError(store_id)
        return store

    @asynccontextmanager
    async def sync_lock(self, store_id: UUID):
        if not await self.repository.try_acquire_sync_lock(store_id):
            raise SyncInProgressError(store_id)
        try:
            yield
        except Exception:
            await self.repository.rollback()
            raise
        finally:
            await self.repository.release_sync_lock(store_id)

    async def full_sync(self, store_id: UUID, now: Optional[datetime] = None) -> SyncResult:
        """Re-ingest the lookback window and recompute its metrics from scratch."""
        now = _utc(now)
        store = await self._load_store(store_id)
        async with self.sync_lock(store.id):
            logger.info(f"Starting full sync for store_id: {store.id}")
            return await self._run_full_sync(store, now)

    async def resync(self, store_id: UUID, now: Optional[datetime] = None) -> SyncResult:
        """Pull what changed since the last successful sync and refresh the affected days."""
        now = _utc(now)
        store = await self._load_store(store_id)
        if store.last_sync_at is None:
            logger.info(f"Store {store.id} has never been synced; running a full sync instead")
            return await self.full_sync(store_id, now)
        async with self.sync_lock(store.id):
            logger.info(f"Starting resync for store_id: {store.id} since {store.last_sync_at}")
            return await self._run_resync(store, now)

    async def _run_full_sync(self, store: StoreData, now: datetime) -> SyncResult:
        started = time.monotonic()
        window_start = now - timedelta(days=self.settings.FULL_SYNC_LOOKBACK_DAYS)
        connector = self.connector_factory(store.platform)

        catalog = await CatalogIngestionEngine(self.repository, connector).ingest(store, None, now)
        orders = await OrderIngestionEngine(self.repository, connector).ingest(store, window_start, now)

        all_orders = await self.repository.list_orders(store.id)
        history = CustomerHistoryIndex.rebuild(all_orders)
        await self.repository.replace_customer_history(store.id, history.to_dict())

        cells = await MetricAggregationEngine(self.repository).aggregate(
            store.id, all_orders, history, utc_day(window_start), utc_day(now), AggregationMode.FULL,
        )

        await self.repository.set_last_sync(store.id, now)
        await self.repository.commit()
        logger.info(f"Full sync completed for store {store.id}")

        return SyncResult(
            store_id=str(store.id),
            mode=AggregationMode.FULL.value,
            window_start=window_start,
            window_end=now,
            products_fetched=catalog.fetched,
            orders_fetched=orders.fetched,
            orders_created=orders.created,
            customers_indexed=len(history),
            metric_cells_written=cells,
            duration=timedelta(seconds=time.monotonic() - started),
        )

    async def _run_resync(self, store: StoreData, now: datetime) -> SyncResult:
        started = time.monotonic()
        since = _utc(store.last_sync_at)
        connector = self.connector_factory(store.platform)

        catalog = await CatalogIngestionEngine(self.repository, connector).ingest(store, since, now)
        orders = await OrderIngestionEngine(self.repository, connector).ingest(store, since, now)

        # Rebuilt from the orders table, so orders committed by an earlier failed run are indexed too
        history = CustomerHistoryIndex(
            await self.repository.list_customer_order_dates(store.id, orders.customer_ids)
        )
        await self.repository.save_customer_history(store.id, history.to_dict())

        # Recompute whole days, so the first day includes orders from before `since`
        first_day = utc_day(since)
        day_start = datetime(first_day.year, first_day.month, first_day.day, tzinfo=timezone.utc)
        window_orders = await self.repository.list_orders(store.id, day_start, now)
        window_customer_ids = {o.platform_customer_id for o in window_orders if o.platform_customer_id}
        window_history = CustomerHistoryIndex(
            await self.repository.load_customer_history(store.id, window_customer_ids)
        )

        cells = await MetricAggregationEngine(self.repository).aggregate(
            store.id, window_orders, window_history, first_day, utc_day(now), AggregationMode.INCREMENTAL,
        )

        await self.repository.set_last_sync(store.id, now)
        await self.repository.commit()
        logger.info(f"Resync completed for store {store.id}")

        return SyncResult(
            store_id=str(store.id),
            mode=AggregationMode.INCREMENTAL.value,
            window_start=since,
            window_end=now,
            products_fetched=catalog.fetched,
            orders_fetched=orders.fetched,
            orders_created=orders.created,
            customers_indexed=len(history),
            metric_cells_written=cells,
            duration=timedelta(seconds=time.monotonic() - started),
        )
