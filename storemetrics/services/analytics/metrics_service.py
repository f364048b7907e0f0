import logging
from collections import defaultdict
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Dict
from uuid import UUID

from storemetrics.core.exceptions import StoreNotFoundError, SyncInProgressError
from storemetrics.crud.sync_repository import SyncRepository
from storemetrics.schemas.metrics import MetricSeries, MetricsReport, Spotlight, SpotlightEntry
from storemetrics.services.analytics.metric_aggregation import date_range
from storemetrics.services.analytics.metric_catalog import VIEWS, MetricType, MetricUnit, MetricView
from storemetrics.services.analytics.metric_summary import DayValues, summarize

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


def format_label(day: date) -> str:
    """Chart label such as "3 Mar"."""
    return f"{day.day} {day:%b}"


class MetricsService:
    """Read side of the metric store plus store disconnection."""

    @staticmethod
    async def get_metrics(
        repository: SyncRepository,
        store_id: UUID,
        start_date: date,
        end_date: date,
        view: MetricView = MetricView.ALL,
    ) -> MetricsReport:
        """Daily series for the metrics of a view.

        Args:
            repository: Data-access handle
            store_id: Store ID
            start_date: First day (inclusive)
            end_date: Last day (inclusive)
            view: Which preset of metrics to return

        Returns:
            MetricsReport with one value per day for every metric of the view.
            Days without stored values read as zero.
        """
        if end_date < start_date:
            raise ValueError(f"end_date {end_date} is before start_date {start_date}")
        store = await repository.get_store(store_id)
        if not store:
            raise StoreNotFoundError(store_id)

        days = date_range(start_date, end_date)
        grid: Dict[date, DayValues] = {day: {} for day in days}
        for metric in await repository.list_metrics(store_id, start_date, end_date):
            metric_type = MetricType.from_stored(metric.metric_type)
            if metric_type is None or metric.date not in grid:
                continue
            grid[metric.date][metric_type] = metric.value

        totals = summarize(grid)
        currency = store.currency or ""

        series = []
        for entry in VIEWS[view]:
            metric_type = entry.metric_type
            series.append(MetricSeries(
                name=entry.name,
                description=entry.description,
                prefix=currency if metric_type.unit == MetricUnit.CURRENCY else "",
                suffix="%" if metric_type.unit == MetricUnit.PERCENT else "",
                values=[grid[day].get(metric_type, Decimal('0')).quantize(CENT) for day in days],
                total=f"{totals[metric_type]:.2f}",
            ))

        return MetricsReport(metrics=series, labels=[format_label(day) for day in days])

    @staticmethod
    async def get_spotlight(
        repository: SyncRepository,
        store_id: UUID,
        start_date: date,
        end_date: date,
    ) -> Spotlight:
        """Highlights for a date range.

        Returns the product with the most revenue (biggest mover), the product
        with the most units sold (best seller) and the customer who spent the
        most (top customer). Entries are empty when the range has no orders.
        """
        store = await repository.get_store(store_id)
        if not store:
            raise StoreNotFoundError(store_id)

        orders = await repository.list_orders(
            store_id,
            datetime.combine(start_date, time.min, tzinfo=timezone.utc),
            datetime.combine(end_date, time.max, tzinfo=timezone.utc),
        )

        product_revenue: Dict[str, Decimal] = defaultdict(Decimal)
        product_units: Dict[str, int] = defaultdict(int)
        customer_spend: Dict[str, Decimal] = defaultdict(Decimal)
        for order in orders:
            if order.platform_customer_id:
                customer_spend[order.customer_name] += order.paid
            for item in order.line_items:
                if not item.platform_product_id:
                    continue
                product_revenue[item.platform_product_id] += item.paid
                product_units[item.platform_product_id] += item.quantity

        spotlight = Spotlight()
        if not orders:
            return spotlight

        titles = await repository.get_product_titles(store_id, product_revenue.keys())
        if product_revenue:
            mover_id = max(product_revenue, key=product_revenue.get)
            spotlight.biggest_mover = SpotlightEntry(name=titles.get(mover_id, ""), amount=product_revenue[mover_id])
            seller_id = max(product_units, key=product_units.get)
            spotlight.best_seller = SpotlightEntry(name=titles.get(seller_id, ""), amount=Decimal(product_units[seller_id]))
        if customer_spend:
            top_name = max(customer_spend, key=customer_spend.get)
            spotlight.top_customer = SpotlightEntry(name=top_name, amount=customer_spend[top_name])
        return spotlight

    @staticmethod
    async def disconnect_store(repository: SyncRepository, store_id: UUID) -> None:
        """Drop the store's platform credentials and everything synced from it."""
        store = await repository.get_store(store_id)
        if not store:
            raise StoreNotFoundError(store_id)
        if store.syncing:
            raise SyncInProgressError(store_id)
        await repository.purge_store_data(store_id)
        await repository.commit()
        logger.info(f"Disconnected store {store_id} and purged its synced data")
