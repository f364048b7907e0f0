import uuid
from datetime import date

import pytest

from factories import FakeShopifyConnector, make_raw_order, make_raw_product, utc
from storemetrics.core.config import get_settings
from storemetrics.core.exceptions import FeedError, StoreNotConnectedError, StoreNotFoundError, SyncInProgressError
from storemetrics.services.sync import SyncOrchestrator

NOW = utc(2024, 6, 1, 12)
LATER = utc(2024, 6, 2, 12)


def _initial_orders():
    return [
        make_raw_order(1, utc(2024, 5, 30, 10), paid="100.00", tax="10.00", customer_id=1),
        make_raw_order(2, utc(2024, 5, 31, 9), paid="50.00", tax="5.00", customer_id=1),
        make_raw_order(3, utc(2024, 6, 1, 8), paid="40.00", tax="0.00", customer_id=3),
        # Older than the lookback window
        make_raw_order(4, utc(2023, 1, 1), customer_id=4),
    ]


def _orchestrator(repository, connector):
    return SyncOrchestrator(repository, connector_factory=lambda platform: connector)


@pytest.mark.asyncio
async def test_full_sync_builds_history_and_metrics(repository, store):
    connector = FakeShopifyConnector(orders=_initial_orders(), products=[make_raw_product(501)])

    result = await _orchestrator(repository, connector).full_sync(store.id, now=NOW)

    assert result.mode == "full"
    assert result.orders_created == 3
    assert result.products_fetched == 1
    assert result.customers_indexed == 2
    assert set(repository.orders[store.id]) == {"1", "2", "3"}
    assert repository.history[store.id]["1"] == [utc(2024, 5, 30, 10), utc(2024, 5, 31, 9)]
    assert repository.metric_value(store.id, date(2024, 5, 30), "New Customers") == 1
    assert repository.metric_value(store.id, date(2024, 5, 31), "Repeat Customers") == 1
    assert repository.metric_value(store.id, date(2024, 6, 1), "Total Sales") == 40

    saved = repository.stores[store.id]
    assert saved.last_sync_at == NOW
    assert saved.syncing is False
    assert saved.currency == "USD"
    # Products are not limited to the order window
    assert connector.product_calls[0]["updated_at_min"] is None
    assert connector.order_calls[0]["created_at_min"] == utc(2023, 12, 4, 12)


@pytest.mark.asyncio
async def test_full_sync_twice_gives_the_same_state(repository, store):
    connector = FakeShopifyConnector(orders=_initial_orders())
    orchestrator = _orchestrator(repository, connector)

    await orchestrator.full_sync(store.id, now=NOW)
    orders_before = dict(repository.orders[store.id])
    metrics_before = dict(repository.metrics[store.id])
    second = await orchestrator.full_sync(store.id, now=NOW)

    assert second.orders_created == 0
    assert repository.orders[store.id] == orders_before
    assert repository.metrics[store.id] == metrics_before


@pytest.mark.asyncio
async def test_feed_failure_releases_lock_and_keeps_last_sync(repository):
    store = repository.add_store(last_sync_at=NOW)
    connector = FakeShopifyConnector(orders=_initial_orders(), fail_orders_on_call=1)

    with pytest.raises(FeedError):
        await _orchestrator(repository, connector).resync(store.id, now=LATER)

    saved = repository.stores[store.id]
    assert saved.syncing is False
    assert saved.last_sync_at == NOW
    assert repository.rollbacks == 1


@pytest.mark.asyncio
async def test_sync_in_progress_is_rejected(repository):
    store = repository.add_store(syncing=True)
    connector = FakeShopifyConnector(orders=_initial_orders())

    with pytest.raises(SyncInProgressError):
        await _orchestrator(repository, connector).full_sync(store.id, now=NOW)

    # The running sync still owns the flag
    assert repository.stores[store.id].syncing is True
    assert connector.order_calls == []


@pytest.mark.asyncio
async def test_unknown_store_fails_before_any_feed_call(repository):
    connector = FakeShopifyConnector(orders=_initial_orders())

    with pytest.raises(StoreNotFoundError):
        await _orchestrator(repository, connector).full_sync(uuid.uuid4(), now=NOW)

    assert connector.order_calls == []


@pytest.mark.asyncio
async def test_disconnected_store_fails_before_any_feed_call(repository):
    store = repository.add_store(access_token="")
    connector = FakeShopifyConnector(orders=_initial_orders())

    with pytest.raises(StoreNotConnectedError):
        await _orchestrator(repository, connector).resync(store.id, now=NOW)

    assert connector.order_calls == []
    assert connector.product_calls == []
    assert repository.stores[store.id].syncing is False


@pytest.mark.asyncio
async def test_resync_without_previous_sync_runs_full_sync(repository, store):
    connector = FakeShopifyConnector(orders=_initial_orders())

    result = await _orchestrator(repository, connector).resync(store.id, now=NOW)

    assert result.mode == "full"
    assert repository.stores[store.id].last_sync_at == NOW


@pytest.mark.asyncio
async def test_resync_refreshes_only_the_changed_days(repository, store):
    connector = FakeShopifyConnector(orders=_initial_orders())
    orchestrator = _orchestrator(repository, connector)
    await orchestrator.full_sync(store.id, now=NOW)
    connector.orders += [
        make_raw_order(5, utc(2024, 6, 1, 15), paid="20.00", tax="0.00", customer_id=2),
        make_raw_order(6, utc(2024, 6, 2, 9), paid="70.00", tax="0.00", customer_id=1),
    ]

    result = await orchestrator.resync(store.id, now=LATER)

    assert result.mode == "incremental"
    assert result.window_start == NOW
    assert result.orders_created == 2
    assert connector.order_calls[-1]["created_at_min"] == NOW
    assert connector.order_calls[-1]["created_at_max"] == LATER

    # 1 June is recomputed as a whole day, including the order from before the last sync
    assert repository.metric_value(store.id, date(2024, 6, 1), "Orders") == 2
    assert repository.metric_value(store.id, date(2024, 6, 1), "New Customers") == 2
    assert repository.metric_value(store.id, date(2024, 6, 1), "Total Sales") == 60
    assert repository.metric_value(store.id, date(2024, 6, 2), "Repeat Customers") == 1
    assert repository.metric_value(store.id, date(2024, 6, 2), "New Customers") == 0
    assert repository.metric_value(store.id, date(2024, 5, 30), "Orders") == 1

    assert repository.history[store.id]["1"][-1] == utc(2024, 6, 2, 9)
    assert repository.history[store.id]["2"] == [utc(2024, 6, 1, 15)]
    assert repository.stores[store.id].last_sync_at == LATER
    assert repository.stores[store.id].syncing is False


@pytest.mark.asyncio
async def test_full_sync_failure_clears_syncing_flag(repository, store):
    connector = FakeShopifyConnector(orders=_initial_orders(), fail_orders_on_call=1)

    with pytest.raises(FeedError):
        await _orchestrator(repository, connector).full_sync(store.id, now=NOW)

    assert repository.stores[store.id].syncing is False
    assert repository.stores[store.id].last_sync_at is None
    assert store.id not in repository.metrics


@pytest.fixture
def one_order_per_page(monkeypatch):
    monkeypatch.setattr(get_settings(), "SYNC_PAGE_SIZE", 1)


@pytest.mark.asyncio
async def test_resync_after_partial_failure_indexes_committed_orders(repository, store, one_order_per_page):
    connector = FakeShopifyConnector(orders=_initial_orders())
    orchestrator = _orchestrator(repository, connector)
    await orchestrator.full_sync(store.id, now=NOW)
    connector.orders += [
        make_raw_order(5, utc(2024, 6, 1, 15), paid="20.00", tax="0.00", customer_id=2),
        make_raw_order(6, utc(2024, 6, 2, 9), paid="70.00", tax="0.00", customer_id=1),
    ]
    # The first page (order 5) is committed, the second request fails
    connector.fail_orders_on_call = len(connector.order_calls) + 2

    with pytest.raises(FeedError):
        await orchestrator.resync(store.id, now=LATER)

    assert "5" in repository.orders[store.id]
    assert "2" not in repository.history[store.id]
    assert repository.stores[store.id].last_sync_at == NOW

    connector.fail_orders_on_call = None
    retry = await orchestrator.resync(store.id, now=LATER)

    assert retry.orders_created == 1
    assert repository.history[store.id]["2"] == [utc(2024, 6, 1, 15)]
    assert repository.history[store.id]["1"] == [utc(2024, 5, 30, 10), utc(2024, 5, 31, 9), utc(2024, 6, 2, 9)]
    assert repository.metric_value(store.id, date(2024, 6, 1), "Orders") == 2
    assert repository.metric_value(store.id, date(2024, 6, 1), "New Customers") == 2
    assert repository.metric_value(store.id, date(2024, 6, 2), "Repeat Customers") == 1

    # Customer 2 comes back and must be seen as returning
    connector.orders.append(make_raw_order(7, utc(2024, 6, 4, 9), paid="30.00", tax="0.00", customer_id=2))
    await orchestrator.resync(store.id, now=utc(2024, 6, 4, 12))

    assert repository.history[store.id]["2"] == [utc(2024, 6, 1, 15), utc(2024, 6, 4, 9)]
    assert repository.metric_value(store.id, date(2024, 6, 4), "Repeat Customers") == 1
    assert repository.metric_value(store.id, date(2024, 6, 4), "New Customers") == 0
    assert repository.metric_value(store.id, date(2024, 6, 4), "New Customer Orders") == 0


@pytest.mark.asyncio
async def test_recovering_a_window_twice_does_not_duplicate_history(repository, store):
    connector = FakeShopifyConnector(orders=_initial_orders())
    orchestrator = _orchestrator(repository, connector)
    await orchestrator.full_sync(store.id, now=NOW)
    connector.orders.append(make_raw_order(5, utc(2024, 6, 1, 15), customer_id=1))

    await orchestrator.resync(store.id, now=LATER)
    # Same window again, as after a failed final commit
    repository.stores[store.id].last_sync_at = NOW
    await orchestrator.resync(store.id, now=LATER)

    assert repository.history[store.id]["1"] == [utc(2024, 5, 30, 10), utc(2024, 5, 31, 9), utc(2024, 6, 1, 15)]
