"""
The fixed catalog of daily store metrics.

Metric names are persisted in `metrics.metric_type` and returned to API
clients, so they must never be renamed.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class MetricUnit(str, Enum):
    CURRENCY = "currency"
    PERCENT = "percent"
    COUNT = "count"


class RollupKind(str, Enum):
    # Range total is the sum of the daily values
    SUM = "sum"
    # Mean of the days with a non-zero value
    AVERAGE_NONZERO = "average_nonzero"
    # Daily values weighted by another metric of the same day
    WEIGHTED = "weighted"


class MetricType(str, Enum):
    TOTAL_SALES = "Total Sales"
    TAXES = "Taxes"
    NET_SALES = "Net Sales"
    COGS = "COGS"
    COGS_PERCENT = "COGS %"
    GROSS_PROFIT = "Gross Profit"
    GROSS_PROFIT_PERCENT = "Gross Profit %"
    ORDERS = "Orders"
    NEW_CUSTOMER_ORDERS = "New Customer Orders"
    NEW_CUSTOMERS = "New Customers"
    REPEAT_CUSTOMERS = "Repeat Customers"
    NEW_CUSTOMER_SALES = "New Customer Sales"
    REPEAT_CUSTOMER_SALES = "Repeat Customer Sales"
    NEW_CUSTOMER_AOV = "New Customer AOV"
    REPEAT_CUSTOMER_AOV = "Repeat Customer AOV"
    AOV = "AOV"
    AVERAGE_NO_OF_ITEMS = "Average No Of Items"
    TOTAL_CUSTOMERS = "Total Customers"
    PURCHASE_REVENUE = "Purchase Revenue"

    @property
    def definition(self) -> "MetricDefinition":
        return METRIC_DEFINITIONS[self]

    @property
    def description(self) -> str:
        return self.definition.description

    @property
    def unit(self) -> MetricUnit:
        return self.definition.unit

    @property
    def rollup(self) -> RollupKind:
        return self.definition.rollup

    @classmethod
    def from_stored(cls, value: str) -> Optional["MetricType"]:
        """Look up a stored metric name; unknown names are logged and return None."""
        try:
            return cls(value)
        except ValueError:
            logger.error(f"Unexpected metric type: {value}")
            return None


@dataclass(frozen=True)
class MetricDefinition:
    description: str
    unit: MetricUnit
    rollup: RollupKind = RollupKind.SUM


METRIC_DEFINITIONS: Dict[MetricType, MetricDefinition] = {
    MetricType.TOTAL_SALES: MetricDefinition(
        "Equates to gross sales - discounts - returns + taxes + shipping charges.", MetricUnit.CURRENCY),
    MetricType.TAXES: MetricDefinition(
        "The total amount of taxes charged on orders during this period.", MetricUnit.CURRENCY),
    MetricType.NET_SALES: MetricDefinition(
        "Equates to gross sales + shipping - taxes - discounts - returns.", MetricUnit.CURRENCY),
    MetricType.COGS: MetricDefinition(
        "Equates to Product Costs + Shipping Costs + Fulfillment Costs + Packing Fees + Transaction Fees",
        MetricUnit.CURRENCY),
    MetricType.COGS_PERCENT: MetricDefinition(
        "Cost of Goods (COGS) as % of Net Sales", MetricUnit.PERCENT, RollupKind.AVERAGE_NONZERO),
    MetricType.GROSS_PROFIT: MetricDefinition(
        "Calculated by subtracting Cost of Goods (COGS) from Net Sales.", MetricUnit.CURRENCY),
    MetricType.GROSS_PROFIT_PERCENT: MetricDefinition(
        "Gross Profit as a % of Net Sales", MetricUnit.PERCENT, RollupKind.AVERAGE_NONZERO),
    MetricType.ORDERS: MetricDefinition("Number of orders", MetricUnit.COUNT),
    MetricType.NEW_CUSTOMER_ORDERS: MetricDefinition("Number of orders from new customers", MetricUnit.COUNT),
    MetricType.NEW_CUSTOMERS: MetricDefinition(
        "The number of first-time buyers during a specific period.", MetricUnit.COUNT),
    MetricType.REPEAT_CUSTOMERS: MetricDefinition(
        "Customers who have made more than one purchase in their order history.", MetricUnit.COUNT),
    MetricType.NEW_CUSTOMER_SALES: MetricDefinition(
        "Net Sales generated from new customers during this time period.", MetricUnit.CURRENCY),
    MetricType.REPEAT_CUSTOMER_SALES: MetricDefinition(
        "Net Sales generated from existing customers during this time period.", MetricUnit.CURRENCY),
    MetricType.NEW_CUSTOMER_AOV: MetricDefinition(
        "Average Value of Each Order from a New Customer. Total New Customer Sales / Number of New Customer Orders.",
        MetricUnit.CURRENCY, RollupKind.WEIGHTED),
    MetricType.REPEAT_CUSTOMER_AOV: MetricDefinition(
        "Average Value of Each Order from a Repeat Customer. Total Repeat Customer Sales / Number of Repeat Customer Orders.",
        MetricUnit.CURRENCY, RollupKind.WEIGHTED),
    MetricType.AOV: MetricDefinition(
        "Average Value of Each Order Total Sales / Orders", MetricUnit.CURRENCY, RollupKind.WEIGHTED),
    MetricType.AVERAGE_NO_OF_ITEMS: MetricDefinition(
        "The average number of items per order. | Total Items Ordered / Total Orders.",
        MetricUnit.COUNT, RollupKind.WEIGHTED),
    MetricType.TOTAL_CUSTOMERS: MetricDefinition(
        "The total number of unique customers who have made a purchase.", MetricUnit.COUNT),
    MetricType.PURCHASE_REVENUE: MetricDefinition(
        "Income generated from the sale of goods, calculated by multiplying the number of units sold by the price per unit",
        MetricUnit.CURRENCY),
}


class MetricView(str, Enum):
    ALL = "all"
    DASHBOARD = "dashboard"
    FINANCE = "finance"


@dataclass(frozen=True)
class ViewEntry:
    """A metric as shown in a view, optionally under a different label."""
    metric_type: MetricType
    display_name: Optional[str] = None
    display_description: Optional[str] = None

    @property
    def name(self) -> str:
        return self.display_name or self.metric_type.value

    @property
    def description(self) -> str:
        return self.display_description or self.metric_type.description


_NET_PROFIT = ViewEntry(
    MetricType.GROSS_PROFIT,
    "Net Profit",
    "Calculated by subtracting Cost of Goods (COGS) and marketing costs from Net Sales.",
)

VIEWS: Dict[MetricView, List[ViewEntry]] = {
    MetricView.ALL: [ViewEntry(metric_type) for metric_type in MetricType],
    MetricView.DASHBOARD: [
        ViewEntry(MetricType.TOTAL_SALES),
        ViewEntry(MetricType.TAXES),
        ViewEntry(MetricType.NET_SALES),
        ViewEntry(MetricType.ORDERS),
        _NET_PROFIT,
        ViewEntry(MetricType.PURCHASE_REVENUE),
    ],
    MetricView.FINANCE: [
        ViewEntry(MetricType.TOTAL_SALES),
        ViewEntry(MetricType.COGS),
        _NET_PROFIT,
        ViewEntry(MetricType.GROSS_PROFIT_PERCENT, "Net Profit %", "Net Profit as a % of Net Sales"),
    ],
}
