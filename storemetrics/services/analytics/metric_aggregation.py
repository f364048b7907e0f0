import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, List, Set
from uuid import UUID

from storemetrics.crud.sync_repository import SyncRepository
from storemetrics.schemas.metrics import MetricData
from storemetrics.schemas.sync import OrderData
from storemetrics.services.analytics.customer_history import CustomerHistoryIndex
from storemetrics.services.analytics.metric_catalog import MetricType

logger = logging.getLogger(__name__)

ZERO = Decimal('0')
HUNDRED = Decimal('100')
# metrics.value is Numeric(18, 4)
METRIC_PRECISION = Decimal('0.0001')


class AggregationMode(str, Enum):
    # Clear the window first so only non-zero cells remain
    FULL = "full"
    # Upsert the recomputed cells and leave other rows alone
    INCREMENTAL = "incremental"


def safe_divide(numerator, denominator) -> Decimal:
    if not denominator:
        return ZERO
    return Decimal(numerator) / Decimal(denominator)


def date_range(start_date: date, end_date: date) -> List[date]:
    """Every day from start_date to end_date, both included."""
    return [start_date + timedelta(days=offset) for offset in range((end_date - start_date).days + 1)]


def utc_day(moment: datetime) -> date:
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone(timezone.utc).date()


@dataclass
class DailyMetrics:
    """Per-day sums and counts; the ratio metrics derive from these."""
    day: date
    total_sales: Decimal = ZERO
    taxes: Decimal = ZERO
    cogs: Decimal = ZERO
    orders: int = 0
    new_customer_orders: int = 0
    new_customer_sales: Decimal = ZERO
    repeat_customer_sales: Decimal = ZERO
    items: int = 0
    purchase_revenue: Decimal = ZERO
    new_customers: Set[str] = field(default_factory=set)
    repeat_customers: Set[str] = field(default_factory=set)
    customers: Set[str] = field(default_factory=set)

    def add_order(self, order: OrderData, is_new: bool) -> None:
        self.total_sales += order.paid
        self.taxes += order.tax
        self.cogs += order.cogs
        self.orders += 1
        self.items += order.item_count
        self.purchase_revenue += order.purchase_revenue

        customer_id = order.platform_customer_id
        if not customer_id:
            return
        self.customers.add(customer_id)
        if is_new:
            self.new_customer_orders += 1
            self.new_customer_sales += order.net_sale
            self.new_customers.add(customer_id)
        else:
            self.repeat_customer_sales += order.net_sale
            self.repeat_customers.add(customer_id)

    @property
    def net_sales(self) -> Decimal:
        return self.total_sales - self.taxes

    @property
    def gross_profit(self) -> Decimal:
        return self.net_sales - self.cogs

    def values(self) -> Dict[MetricType, Decimal]:
        net_sales = self.net_sales
        repeat_orders = self.orders - self.new_customer_orders
        return {
            MetricType.TOTAL_SALES: self.total_sales,
            MetricType.TAXES: self.taxes,
            MetricType.NET_SALES: net_sales,
            MetricType.COGS: self.cogs,
            MetricType.COGS_PERCENT: safe_divide(self.cogs, net_sales) * HUNDRED,
            MetricType.GROSS_PROFIT: self.gross_profit,
            MetricType.GROSS_PROFIT_PERCENT: safe_divide(self.gross_profit, net_sales) * HUNDRED,
            MetricType.ORDERS: Decimal(self.orders),
            MetricType.NEW_CUSTOMER_ORDERS: Decimal(self.new_customer_orders),
            MetricType.NEW_CUSTOMERS: Decimal(len(self.new_customers)),
            # A first-time buyer who orders again the same day counts only as new
            MetricType.REPEAT_CUSTOMERS: Decimal(len(self.repeat_customers - self.new_customers)),
            MetricType.NEW_CUSTOMER_SALES: self.new_customer_sales,
            MetricType.REPEAT_CUSTOMER_SALES: self.repeat_customer_sales,
            MetricType.NEW_CUSTOMER_AOV: safe_divide(self.new_customer_sales, self.new_customer_orders),
            MetricType.REPEAT_CUSTOMER_AOV: safe_divide(self.repeat_customer_sales, repeat_orders),
            MetricType.AOV: safe_divide(self.total_sales, self.orders),
            MetricType.AVERAGE_NO_OF_ITEMS: safe_divide(self.items, self.orders),
            MetricType.TOTAL_CUSTOMERS: Decimal(len(self.customers)),
            MetricType.PURCHASE_REVENUE: self.purchase_revenue,
        }


def compute_daily_metrics(
    orders: Iterable[OrderData],
    history: CustomerHistoryIndex,
    start_date: date,
    end_date: date,
) -> Dict[date, DailyMetrics]:
    """
    Bucket orders into UTC days and accumulate the daily figures.

    An order is "new" when it is its customer's first purchase overall:
    its timestamp equals the first date in the history index and no earlier
    order of the same customer (by timestamp, then platform order id) has
    already claimed it. Orders outside [start_date, end_date] are ignored.
    """
    days = {day: DailyMetrics(day=day) for day in date_range(start_date, end_date)}
    claimed_first: Set[str] = set()

    for order in sorted(orders, key=lambda o: (o.ordered_at, o.platform_order_id)):
        bucket = days.get(utc_day(order.ordered_at))
        customer_id = order.platform_customer_id
        is_new = False
        if customer_id and customer_id not in claimed_first:
            first_purchase = history.first_purchase(customer_id)
            if first_purchase is None or order.ordered_at == first_purchase:
                if first_purchase is None:
                    logger.warning(f"Customer {customer_id} missing from order history; treating earliest order as first purchase")
                is_new = True
                claimed_first.add(customer_id)
        if bucket is not None:
            bucket.add_order(order, is_new)

    return days


class MetricAggregationEngine:
    """Recomputes the daily metric catalog for a window and writes the non-zero cells."""

    def __init__(self, repository: SyncRepository):
        self.repository = repository

    async def aggregate(
        self,
        store_id: UUID,
        orders: Iterable[OrderData],
        history: CustomerHistoryIndex,
        start_date: date,
        end_date: date,
        mode: AggregationMode,
    ) -> int:
        """
        Compute and stage the metrics for every day in [start_date, end_date].

        The caller commits. Returns the number of metric cells written.
        """
        daily = compute_daily_metrics(orders, history, start_date, end_date)

        cells: List[MetricData] = []
        for day, metrics in daily.items():
            for metric_type, value in metrics.values().items():
                value = value.quantize(METRIC_PRECISION)
                if value == ZERO:
                    continue
                cells.append(MetricData(
                    date=day,
                    metric_type=metric_type.value,
                    value=value,
                    description=metric_type.description,
                ))

        if mode == AggregationMode.FULL:
            deleted = await self.repository.delete_metrics(store_id, start_date, end_date)
            logger.info(f"Cleared {deleted} metric rows for store {store_id} between {start_date} and {end_date}")

        written = await self.repository.upsert_metrics(store_id, cells)
        logger.info(f"Aggregated {written} metric cells for store {store_id} ({mode.value}, {start_date} to {end_date})")
        return written
