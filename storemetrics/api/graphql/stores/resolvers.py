import logging
from uuid import UUID

from strawberry.types import Info

from storemetrics.api.graphql.stores.types import Store
from storemetrics.core.exceptions import SyncError
from storemetrics.crud.sync_repository import SyncRepository
from storemetrics.schemas.store import StoreData
from storemetrics.services.analytics.metrics_service import MetricsService

logger = logging.getLogger(__name__)


def _parse_store_id(store_id: str) -> UUID:
    try:
        return UUID(str(store_id))
    except ValueError:
        raise ValueError(f"Invalid store id: {store_id}") from None


async def _get_store_data(info: Info, store_id: str) -> StoreData:
    repository: SyncRepository = info.context["repository"]
    store = await repository.get_store(_parse_store_id(store_id))
    if not store:
        raise ValueError("Store not found")
    return store


def to_store_type(store: StoreData) -> Store:
    return Store(
        id=str(store.id),
        name=store.name,
        platform=store.platform,
        shop_domain=store.shop_domain,
        is_active=store.is_active,
        is_connected=store.is_connected,
        syncing=store.syncing,
        last_sync_at=store.last_sync_at,
        currency=store.currency,
    )


async def resolve_store(info: Info, store_id: str) -> Store:
    """Resolver for the store query that returns a specific store by ID."""
    return to_store_type(await _get_store_data(info, store_id))


async def _enqueue_sync(info: Info, store_id: str, task) -> bool:
    store = await _get_store_data(info, store_id)
    if not store.is_active:
        raise ValueError("Cannot sync an inactive store")
    if not store.is_connected:
        raise ValueError("Store is not connected to a platform")
    if store.syncing:
        raise ValueError("Store is already syncing")

    try:
        task.delay(str(store.id))
    except Exception as e:
        logger.error(f"Failed to enqueue {task.name} for store {store.id}: {e}", exc_info=True)
        raise ValueError("An error occurred while triggering store sync")
    return True


async def resolve_trigger_full_sync(info: Info, store_id: str) -> bool:
    """
    Resolver for the triggerFullSync mutation.
    Queues a full re-ingestion of the lookback window.
    """
    from storemetrics.tasks.store_sync import full_sync_store
    return await _enqueue_sync(info, store_id, full_sync_store)


async def resolve_trigger_resync(info: Info, store_id: str) -> bool:
    """
    Resolver for the triggerResync mutation.
    Queues an incremental sync from the store's last successful sync.
    """
    from storemetrics.tasks.store_sync import resync_store
    return await _enqueue_sync(info, store_id, resync_store)


async def resolve_disconnect_store(info: Info, store_id: str) -> bool:
    """
    Resolver for the disconnectStore mutation.
    Clears the platform credentials and deletes all synced data of the store.
    """
    repository: SyncRepository = info.context["repository"]
    try:
        await MetricsService.disconnect_store(repository, _parse_store_id(store_id))
    except SyncError as e:
        raise ValueError(f"Failed to disconnect store: {str(e)}")
    return True
