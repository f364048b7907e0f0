from datetime import date
from decimal import Decimal

from storemetrics.services.analytics.metric_catalog import MetricType, RollupKind
from storemetrics.services.analytics.metric_summary import summarize, summarize_metric

DAY_1 = date(2024, 5, 1)
DAY_2 = date(2024, 5, 2)


def test_aov_is_weighted_by_orders():
    daily = {
        DAY_1: {MetricType.AOV: Decimal("10"), MetricType.ORDERS: Decimal("1")},
        DAY_2: {MetricType.AOV: Decimal("20"), MetricType.ORDERS: Decimal("9")},
    }

    assert summarize_metric(MetricType.AOV, daily) == Decimal("19")


def test_repeat_customer_aov_is_weighted_by_repeat_orders():
    daily = {
        DAY_1: {
            MetricType.REPEAT_CUSTOMER_AOV: Decimal("30"),
            MetricType.ORDERS: Decimal("4"),
            MetricType.NEW_CUSTOMER_ORDERS: Decimal("1"),
        },
        DAY_2: {
            MetricType.REPEAT_CUSTOMER_AOV: Decimal("70"),
            MetricType.ORDERS: Decimal("2"),
            MetricType.NEW_CUSTOMER_ORDERS: Decimal("1"),
        },
    }

    # (30 * 3 + 70 * 1) / 4
    assert summarize_metric(MetricType.REPEAT_CUSTOMER_AOV, daily) == Decimal("40")


def test_new_customer_aov_is_weighted_by_new_customer_orders():
    daily = {
        DAY_1: {MetricType.NEW_CUSTOMER_AOV: Decimal("50"), MetricType.NEW_CUSTOMER_ORDERS: Decimal("3")},
        DAY_2: {MetricType.NEW_CUSTOMER_AOV: Decimal("90"), MetricType.NEW_CUSTOMER_ORDERS: Decimal("1")},
    }

    assert summarize_metric(MetricType.NEW_CUSTOMER_AOV, daily) == Decimal("60")


def test_percentages_average_over_measured_days():
    daily = {
        DAY_1: {MetricType.GROSS_PROFIT_PERCENT: Decimal("60")},
        DAY_2: {},
        date(2024, 5, 3): {MetricType.GROSS_PROFIT_PERCENT: Decimal("70")},
    }

    assert summarize_metric(MetricType.GROSS_PROFIT_PERCENT, daily) == Decimal("65")


def test_simple_metrics_are_summed():
    daily = {
        DAY_1: {MetricType.TOTAL_SALES: Decimal("100.50")},
        DAY_2: {MetricType.TOTAL_SALES: Decimal("49.50")},
    }

    assert summarize_metric(MetricType.TOTAL_SALES, daily) == Decimal("150.00")


def test_empty_range_summarizes_to_zero():
    totals = summarize({DAY_1: {}, DAY_2: {}})

    assert set(totals) == set(MetricType)
    assert all(value == 0 for value in totals.values())


def test_rollup_kinds_in_catalog():
    assert MetricType.COGS_PERCENT.rollup == RollupKind.AVERAGE_NONZERO
    assert MetricType.AVERAGE_NO_OF_ITEMS.rollup == RollupKind.WEIGHTED
    assert MetricType.ORDERS.rollup == RollupKind.SUM
