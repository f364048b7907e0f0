from factories import make_order, utc
from storemetrics.services.analytics.customer_history import CustomerHistoryIndex


def test_rebuild_sorts_dates_and_skips_guests():
    index = CustomerHistoryIndex.rebuild([
        make_order(1, utc(2024, 3, 1), customer_id="a"),
        make_order(2, utc(2024, 1, 1), customer_id="a"),
        make_order(3, utc(2024, 2, 1), customer_id=""),
        make_order(4, utc(2024, 2, 1), customer_id="b"),
    ])

    assert len(index) == 2
    assert "" not in index
    assert index.order_dates("a") == [utc(2024, 1, 1), utc(2024, 3, 1)]
    assert index.first_purchase("a") == utc(2024, 1, 1)
    assert index.first_purchase("b") == utc(2024, 2, 1)
    assert index.first_purchase("nobody") is None


def test_extend_merges_and_reports_touched_customers():
    index = CustomerHistoryIndex({"a": [utc(2024, 2, 1)], "b": [utc(2024, 1, 1)]})

    touched = index.extend([
        make_order(5, utc(2024, 1, 15), customer_id="a"),
        make_order(6, utc(2024, 3, 1), customer_id="c"),
        make_order(7, utc(2024, 3, 1), customer_id=""),
    ])

    assert touched == {"a", "c"}
    assert index.first_purchase("a") == utc(2024, 1, 15)
    assert index.order_dates("a") == [utc(2024, 1, 15), utc(2024, 2, 1)]
    assert index.to_dict(touched) == {
        "a": [utc(2024, 1, 15), utc(2024, 2, 1)],
        "c": [utc(2024, 3, 1)],
    }


def test_loaded_history_is_normalized():
    index = CustomerHistoryIndex({"a": [utc(2024, 5, 1), utc(2024, 4, 1)], "": [utc(2024, 1, 1)], "empty": []})

    assert index.first_purchase("a") == utc(2024, 4, 1)
    assert len(index) == 1
