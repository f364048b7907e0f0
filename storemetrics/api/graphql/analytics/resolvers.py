from uuid import UUID

from strawberry.types import Info

from storemetrics.api.graphql.analytics.types import MetricSeries, MetricsReport, Spotlight, SpotlightEntry
from storemetrics.api.graphql.common.inputs import DateRangeInput
from storemetrics.core.exceptions import StoreNotFoundError
from storemetrics.crud.sync_repository import SyncRepository
from storemetrics.schemas.metrics import SpotlightEntry as SpotlightEntryData
from storemetrics.services.analytics.metric_catalog import MetricView
from storemetrics.services.analytics.metrics_service import MetricsService


def _entry(entry: SpotlightEntryData) -> SpotlightEntry:
    return SpotlightEntry(name=entry.name, amount=entry.amount)


async def resolve_metrics(info: Info, store_id: str, date_range: DateRangeInput, view: MetricView) -> MetricsReport:
    """Resolver for the metrics query: one series per metric of the view, one value per day."""
    repository: SyncRepository = info.context["repository"]
    try:
        report = await MetricsService.get_metrics(
            repository, UUID(str(store_id)), date_range.start_date, date_range.end_date, view,
        )
    except StoreNotFoundError:
        raise ValueError("Store not found")

    return MetricsReport(
        metrics=[
            MetricSeries(
                name=series.name,
                description=series.description,
                prefix=series.prefix,
                suffix=series.suffix,
                values=series.values,
                total=series.total,
            ) for series in report.metrics
        ],
        labels=report.labels,
    )


async def resolve_spotlight(info: Info, store_id: str, date_range: DateRangeInput) -> Spotlight:
    """Resolver for the spotlight query."""
    repository: SyncRepository = info.context["repository"]
    try:
        spotlight = await MetricsService.get_spotlight(
            repository, UUID(str(store_id)), date_range.start_date, date_range.end_date,
        )
    except StoreNotFoundError:
        raise ValueError("Store not found")

    return Spotlight(
        biggest_mover=_entry(spotlight.biggest_mover),
        best_seller=_entry(spotlight.best_seller),
        top_customer=_entry(spotlight.top_customer),
    )
