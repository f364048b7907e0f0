import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from storemetrics.core.exceptions import StoreNotConnectedError, StoreNotFoundError, SyncInProgressError
from storemetrics.crud.sql_repository import SqlSyncRepository
from storemetrics.db.base import AsyncSessionLocal
from storemetrics.services.sync import SyncOrchestrator
from storemetrics.tasks.async_helper import celery_async_task

logger = logging.getLogger(__name__)

# Failures that retrying cannot fix
SKIPPABLE_ERRORS = (StoreNotFoundError, StoreNotConnectedError, SyncInProgressError)


async def _full_sync_logic(store_id: UUID, db: AsyncSession) -> dict:
    orchestrator = SyncOrchestrator(SqlSyncRepository(db))
    try:
        result = await orchestrator.full_sync(store_id)
    except SKIPPABLE_ERRORS as e:
        logger.warning(f"Skipping full sync for store {store_id}: {e}")
        return {"store_id": str(store_id), "status": "skipped", "reason": str(e)}
    except Exception as e:
        logger.error(f"Full sync failed for store {store_id}: {e}", exc_info=True)
        raise
    return {"status": "completed", **result.model_dump(mode="json")}


async def _resync_logic(store_id: UUID, db: AsyncSession) -> dict:
    orchestrator = SyncOrchestrator(SqlSyncRepository(db))
    try:
        result = await orchestrator.resync(store_id)
    except SKIPPABLE_ERRORS as e:
        logger.warning(f"Skipping resync for store {store_id}: {e}")
        return {"store_id": str(store_id), "status": "skipped", "reason": str(e)}
    except Exception as e:
        logger.error(f"Resync failed for store {store_id}: {e}", exc_info=True)
        raise
    return {"status": "completed", **result.model_dump(mode="json")}


@celery_async_task()
async def full_sync_store(self, store_id: str):
    """Task for the initial (or a forced) full synchronization of a store"""
    async with AsyncSessionLocal() as db:
        return await _full_sync_logic(UUID(str(store_id)), db)


@celery_async_task()
async def resync_store(self, store_id: str):
    """Task for syncing what changed since the store's last successful sync"""
    async with AsyncSessionLocal() as db:
        return await _resync_logic(UUID(str(store_id)), db)


async def _schedule_periodic_resyncs_logic() -> str:
    """Queue a resync for every active store that still has platform credentials."""
    logger.info("Starting to schedule periodic resyncs for all active stores")
    async with AsyncSessionLocal() as db:
        store_ids = await SqlSyncRepository(db).list_syncable_store_ids()
    if not store_ids:
        logger.info("No connected stores found for periodic resync scheduling.")
        return "No connected stores found."

    scheduled_count = 0
    for store_id in store_ids:
        try:
            resync_store.delay(str(store_id))
            scheduled_count += 1
        except Exception as e:
            logger.error(f"Failed to schedule resync for store {store_id}: {e}", exc_info=True)
    logger.info(f"Scheduled periodic resyncs for {scheduled_count} stores.")
    return f"Scheduled periodic resyncs for {scheduled_count} stores."


@celery_async_task(retry_on=())
async def schedule_periodic_resyncs(self, *args, **kwargs):
    """Task for fetching all connected stores and scheduling resync_store for each."""
    return await _schedule_periodic_resyncs_logic()
