from datetime import date
from decimal import Decimal
from typing import Callable, Dict

from storemetrics.services.analytics.metric_catalog import MetricType, RollupKind

ZERO = Decimal('0')

DayValues = Dict[MetricType, Decimal]

# Weight of each day for the weighted metrics
ROLLUP_WEIGHTS: Dict[MetricType, Callable[[DayValues], Decimal]] = {
    MetricType.AOV: lambda day: day.get(MetricType.ORDERS, ZERO),
    MetricType.AVERAGE_NO_OF_ITEMS: lambda day: day.get(MetricType.ORDERS, ZERO),
    MetricType.NEW_CUSTOMER_AOV: lambda day: day.get(MetricType.NEW_CUSTOMER_ORDERS, ZERO),
    MetricType.REPEAT_CUSTOMER_AOV: lambda day: (
        day.get(MetricType.ORDERS, ZERO) - day.get(MetricType.NEW_CUSTOMER_ORDERS, ZERO)
    ),
}


def summarize_metric(metric_type: MetricType, daily: Dict[date, DayValues]) -> Decimal:
    """Roll the daily values of one metric up to a single figure for the whole range."""
    values = [day.get(metric_type, ZERO) for day in daily.values()]

    if metric_type.rollup == RollupKind.AVERAGE_NONZERO:
        measured = [value for value in values if value]
        return sum(measured, ZERO) / len(measured) if measured else ZERO

    if metric_type.rollup == RollupKind.WEIGHTED:
        weight_of = ROLLUP_WEIGHTS[metric_type]
        total_weight = ZERO
        weighted_sum = ZERO
        for day in daily.values():
            weight = weight_of(day)
            total_weight += weight
            weighted_sum += day.get(metric_type, ZERO) * weight
        return weighted_sum / total_weight if total_weight else ZERO

    return sum(values, ZERO)


def summarize(daily: Dict[date, DayValues]) -> Dict[MetricType, Decimal]:
    """Range totals for every metric in the catalog. Missing days and cells count as zero."""
    return {metric_type: summarize_metric(metric_type, daily) for metric_type in MetricType}
