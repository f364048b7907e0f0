import uuid

import pytest

from factories import FakeShopifyConnector, make_raw_order, utc
from storemetrics.core.exceptions import FeedError
from storemetrics.services.sync import SyncOrchestrator
from storemetrics.tasks import store_sync


@pytest.fixture
def connector():
    return FakeShopifyConnector(orders=[make_raw_order(1, utc(2024, 5, 30), customer_id=1)])


@pytest.fixture
def patched_sync(monkeypatch, repository, connector):
    """Point the task logic at the in-memory repository and the fake feed."""
    monkeypatch.setattr(store_sync, "SqlSyncRepository", lambda db: repository)
    monkeypatch.setattr(
        store_sync,
        "SyncOrchestrator",
        lambda repo: SyncOrchestrator(repo, connector_factory=lambda platform: connector),
    )


@pytest.mark.asyncio
async def test_full_sync_logic_reports_result(patched_sync, repository, store):
    result = await store_sync._full_sync_logic(store.id, db=None)

    assert result["status"] == "completed"
    assert result["store_id"] == str(store.id)
    assert result["mode"] == "full"
    assert repository.stores[store.id].last_sync_at is not None


@pytest.mark.asyncio
async def test_unknown_store_is_skipped(patched_sync):
    store_id = uuid.uuid4()

    result = await store_sync._resync_logic(store_id, db=None)

    assert result["status"] == "skipped"
    assert result["store_id"] == str(store_id)


@pytest.mark.asyncio
async def test_store_already_syncing_is_skipped(patched_sync, repository):
    store = repository.add_store(syncing=True)

    result = await store_sync._full_sync_logic(store.id, db=None)

    assert result["status"] == "skipped"
    assert "already syncing" in result["reason"]


@pytest.mark.asyncio
async def test_feed_error_propagates_for_retry(patched_sync, repository, store, connector):
    connector.fail_orders_on_call = 1

    with pytest.raises(FeedError):
        await store_sync._full_sync_logic(store.id, db=None)

    assert repository.stores[store.id].syncing is False
