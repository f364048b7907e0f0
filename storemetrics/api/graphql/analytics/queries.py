import strawberry
from strawberry.types import Info
from storemetrics.api.graphql.common.inputs import DateRangeInput
from storemetrics.api.graphql.analytics.types import MetricView, MetricsReport, Spotlight

@strawberry.type
class AnalyticsQuery:
    @strawberry.field
    async def metrics(
        self,
        info: Info,
        store_id: strawberry.ID,
        date_range: DateRangeInput,
        view: MetricView = MetricView.ALL,
    ) -> MetricsReport:
        from storemetrics.api.graphql.analytics.resolvers import resolve_metrics
        return await resolve_metrics(info, store_id, date_range, view)

    @strawberry.field
    async def spotlight(
        self,
        info: Info,
        store_id: strawberry.ID,
        date_range: DateRangeInput,
    ) -> Spotlight:
        from storemetrics.api.graphql.analytics.resolvers import resolve_spotlight
        return await resolve_spotlight(info, store_id, date_range)
