from decimal import Decimal

import pytest

from factories import FakeShopifyConnector, make_raw_order, utc
from storemetrics.core.exceptions import FeedError
from storemetrics.services.sync.order_ingestion import OrderIngestionEngine

SINCE = utc(2024, 1, 1)
UNTIL = utc(2024, 2, 1)


@pytest.mark.asyncio
async def test_orders_are_stored_with_derived_costs(repository, store):
    connector = FakeShopifyConnector(orders=[make_raw_order(1, utc(2024, 1, 10), paid="100.00", tax="10.00", customer_id=5)])

    result = await OrderIngestionEngine(repository, connector).ingest(store, SINCE, UNTIL)

    assert result.fetched == 1
    assert result.created == 1
    order = repository.orders[store.id]["1"]
    assert order.cogs == Decimal("30.60")
    assert order.gross_profit == Decimal("69.40")
    line_item = order.line_items[0]
    assert line_item.paid == Decimal("100.00")
    assert line_item.product_cost == Decimal("34.00")
    assert line_item.pre_tax_gross_profit == Decimal("66.00")
    assert line_item.pre_tax_gross_margin == Decimal("66.00")


@pytest.mark.asyncio
async def test_store_cost_ratio_overrides_default(repository):
    store = repository.add_store(cogs_ratio=Decimal("0.5"))
    connector = FakeShopifyConnector(orders=[make_raw_order(1, utc(2024, 1, 10), paid="100.00", tax="10.00")])

    await OrderIngestionEngine(repository, connector).ingest(store, SINCE, UNTIL)

    order = repository.orders[store.id]["1"]
    assert order.cogs == Decimal("45.00")
    assert order.gross_profit == Decimal("55.00")
    assert order.line_items[0].pre_tax_gross_margin == Decimal("50.00")


@pytest.mark.asyncio
async def test_reingesting_overlapping_window_creates_nothing_new(repository, store):
    raw_orders = [make_raw_order(i, utc(2024, 1, i + 1)) for i in range(1, 6)]
    engine = OrderIngestionEngine(repository, FakeShopifyConnector(orders=raw_orders), page_size=2)

    first = await engine.ingest(store, SINCE, UNTIL)
    second = await engine.ingest(store, SINCE, UNTIL)

    assert first.created == 5
    assert first.pages == 3
    assert second.fetched == 5
    assert second.created == 0
    assert second.created_orders == []
    assert len(repository.orders[store.id]) == 5


@pytest.mark.asyncio
async def test_currency_is_recorded_from_first_order(repository, store):
    connector = FakeShopifyConnector(orders=[
        make_raw_order(1, utc(2024, 1, 10), currency="CAD"),
        make_raw_order(2, utc(2024, 1, 11), currency="USD"),
    ])

    await OrderIngestionEngine(repository, connector).ingest(store, SINCE, UNTIL)

    assert repository.stores[store.id].currency == "CAD"


@pytest.mark.asyncio
async def test_existing_currency_is_kept(repository):
    store = repository.add_store(currency="EUR")
    connector = FakeShopifyConnector(orders=[make_raw_order(1, utc(2024, 1, 10), currency="CAD")])

    await OrderIngestionEngine(repository, connector).ingest(store, SINCE, UNTIL)

    assert repository.stores[store.id].currency == "EUR"


@pytest.mark.asyncio
async def test_empty_window_is_not_an_error(repository, store):
    connector = FakeShopifyConnector(orders=[])

    result = await OrderIngestionEngine(repository, connector).ingest(store, SINCE, UNTIL)

    assert result.fetched == 0
    assert result.pages == 0
    assert result.watermark is None
    assert len(connector.order_calls) == 1


@pytest.mark.asyncio
async def test_only_orders_inside_window_are_requested(repository, store):
    connector = FakeShopifyConnector(orders=[
        make_raw_order(1, utc(2023, 12, 31)),
        make_raw_order(2, utc(2024, 1, 15)),
        make_raw_order(3, utc(2024, 2, 2)),
    ])

    result = await OrderIngestionEngine(repository, connector).ingest(store, SINCE, UNTIL)

    assert set(repository.orders[store.id]) == {"2"}
    assert connector.order_calls[0]["created_at_min"] == SINCE
    assert connector.order_calls[0]["created_at_max"] == UNTIL
    assert connector.order_calls[0]["access_token"] == store.access_token
    assert result.watermark == utc(2024, 1, 15)


@pytest.mark.asyncio
async def test_feed_failure_keeps_committed_pages(repository, store):
    raw_orders = [make_raw_order(i, utc(2024, 1, i + 1)) for i in range(1, 6)]
    connector = FakeShopifyConnector(orders=raw_orders, fail_orders_on_call=2)
    engine = OrderIngestionEngine(repository, connector, page_size=2)

    with pytest.raises(FeedError) as exc_info:
        await engine.ingest(store, SINCE, UNTIL)

    assert exc_info.value.cursor == "2"
    assert set(repository.orders[store.id]) == {"1", "2"}
    assert repository.commits == 1


@pytest.mark.asyncio
async def test_guest_orders_are_stored_without_customer(repository, store):
    connector = FakeShopifyConnector(orders=[make_raw_order(1, utc(2024, 1, 10), customer_id=None)])

    result = await OrderIngestionEngine(repository, connector).ingest(store, SINCE, UNTIL)

    assert result.created_orders[0].platform_customer_id == ""
    assert repository.orders[store.id]["1"].customer_name == "Unknown"


@pytest.mark.asyncio
async def test_malformed_order_is_skipped(repository, store):
    broken = make_raw_order(1, utc(2024, 1, 10))
    broken["created_at"] = "not-a-date"
    connector = FakeShopifyConnector(orders=[make_raw_order(2, utc(2024, 1, 11))])
    connector.orders.append(broken)
    # The fake filters on created_at, so serve the broken order from an unfiltered listing
    connector.fetch_orders_page = _unfiltered(connector.orders)

    result = await OrderIngestionEngine(repository, connector).ingest(store, SINCE, UNTIL)

    assert result.fetched == 2
    assert result.created == 1
    assert set(repository.orders[store.id]) == {"2"}


def _unfiltered(raw_orders):
    async def fetch(access_token, shop_domain, limit, created_at_min=None, created_at_max=None, cursor=None):
        return FakeShopifyConnector._page(raw_orders, limit, cursor)
    return fetch


@pytest.mark.asyncio
async def test_customers_of_already_stored_orders_are_reported(repository, store):
    connector = FakeShopifyConnector(orders=[
        make_raw_order(1, utc(2024, 1, 10), customer_id=5),
        make_raw_order(2, utc(2024, 1, 11), customer_id=None),
    ])
    engine = OrderIngestionEngine(repository, connector)
    await engine.ingest(store, SINCE, UNTIL)
    connector.orders.append(make_raw_order(3, utc(2024, 1, 12), customer_id=6))

    second = await engine.ingest(store, SINCE, UNTIL)

    assert second.created == 1
    assert second.customer_ids == {"5", "6"}
