from decimal import Decimal
from typing import List
import strawberry

from storemetrics.services.analytics.metric_catalog import MetricView as MetricViewEnum

MetricView = strawberry.enum(MetricViewEnum, name="MetricView")


@strawberry.type
class MetricSeries:
    name: str
    description: str
    prefix: str
    suffix: str
    values: List[Decimal]
    total: str


@strawberry.type
class MetricsReport:
    metrics: List[MetricSeries]
    labels: List[str]


@strawberry.type
class SpotlightEntry:
    name: str
    amount: Decimal


@strawberry.type
class Spotlight:
    biggest_mover: SpotlightEntry
    best_seller: SpotlightEntry
    top_customer: SpotlightEntry
