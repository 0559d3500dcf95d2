"""Tests for summary statistics and grouped aggregation."""

from datetime import date

import pytest

from chainpulse.schemas.analytics import AggregationType, AnalyticsCategory, AnalyticsType
from chainpulse.services.aggregation import (
    aggregate_groups,
    compute_stats,
    generate_trends,
    numeric_value,
    rank_entities,
    reduce_values,
)
from conftest import make_event, ms


def test_empty_input_yields_zeroed_stats():
    stats = compute_stats([])
    assert stats.total_records == 0
    assert stats.categories == {category: 0 for category in AnalyticsCategory}
    assert stats.types == {event_type: 0 for event_type in AnalyticsType}
    assert stats.trends == []
    assert stats.top_entities == []
    assert stats.date_range.start == stats.date_range.end


def test_three_transactions_one_day():
    records = [
        make_event(f"t{i}", ms(2024, 5, 1, 9, i), "transaction", "blockchain", {"value": value})
        for i, value in enumerate((10, 20, 30))
    ]
    stats = compute_stats(records)
    assert stats.total_records == 3
    assert stats.types[AnalyticsType.TRANSACTION] == 3
    assert stats.types[AnalyticsType.GAS_FEE] == 0
    assert stats.categories[AnalyticsCategory.BLOCKCHAIN] == 3
    assert len(stats.trends) == 1
    assert stats.trends[0].date == date(2024, 5, 1)
    assert stats.trends[0].count == 3
    assert stats.trends[0].value == 60
    assert stats.date_range.start.isoformat() == "2024-05-01T09:00:00+00:00"
    assert stats.date_range.end.isoformat() == "2024-05-01T09:02:00+00:00"


def test_numeric_value_prefers_value_then_amount():
    assert numeric_value({"value": 4, "amount": 9}) == 4
    assert numeric_value({"value": "4", "amount": 9}) == 9
    assert numeric_value({"value": True, "amount": 2.5}) == 2.5
    assert numeric_value({"amount": None}) == 0
    assert numeric_value({}) == 0


def test_trends_bucket_by_utc_day_ascending():
    records = [
        make_event("late", ms(2024, 5, 2, 0, 0, 0), data={"amount": 1}),
        make_event("early", ms(2024, 5, 1, 23, 59, 59), data={"value": 2}),
        make_event("late-2", ms(2024, 5, 2, 12), data={"value": 3}),
    ]
    trends = generate_trends(records)
    assert [(point.date, point.count, point.value) for point in trends] == [
        (date(2024, 5, 1), 1, 2),
        (date(2024, 5, 2), 2, 4),
    ]


def test_top_entities_percentage_over_all_matched_records():
    addresses = ["A", "B", "A", None, "C", "B", "A"]
    records = [
        make_event(f"r{i}", ms(2024, 5, 1) + i, data={"address": address} if address else {})
        for i, address in enumerate(addresses)
    ]
    top = rank_entities(records)
    assert [(entity.entity, entity.count) for entity in top] == [("A", 3), ("B", 2), ("C", 1)]
    assert top[0].percentage == pytest.approx(300 / 7)


def test_top_entities_limit_and_first_seen_ties():
    records = [
        make_event(f"r{i}", ms(2024, 5, 1) + i, data={"address": f"0x{i:02d}"}) for i in range(12)
    ]
    top = rank_entities(records)
    assert len(top) == 10
    assert [entity.entity for entity in top] == [f"0x{i:02d}" for i in range(10)]
    assert all(entity.percentage == pytest.approx(100 / 12) for entity in top)


def test_empty_address_is_not_ranked():
    records = [make_event("r1", ms(2024, 5, 1), data={"address": ""})]
    assert rank_entities(records) == []


@pytest.mark.parametrize(
    ("aggregation", "expected"),
    [
        (AggregationType.COUNT, 4),
        (AggregationType.SUM, 10),
        (AggregationType.AVG, 2.5),
        (AggregationType.MIN, 1),
        (AggregationType.MAX, 4),
        (AggregationType.MEDIAN, 2.5),
    ],
)
def test_reduce_values(aggregation, expected):
    assert reduce_values([4, 1, 3, 2], aggregation, count=4) == expected


def test_reduce_values_percentile_and_empty():
    values = list(range(1, 101))
    assert reduce_values(values, AggregationType.PERCENTILE, count=100) == 95
    assert reduce_values(values, AggregationType.PERCENTILE, count=100, percentile=50) == 50
    assert reduce_values([], AggregationType.SUM, count=2) is None
    assert reduce_values([], AggregationType.COUNT, count=2) == 2


def test_aggregate_groups_by_type():
    records = [
        make_event("a", ms(2024, 5, 1), "transaction", data={"value": 10}),
        make_event("b", ms(2024, 5, 1), "transaction", data={"value": 30}),
        make_event("c", ms(2024, 5, 1), "transaction", data={"value": "n/a"}),
        make_event("d", ms(2024, 5, 1), "gas_fee", "network", data={"value": 7}),
    ]
    rows = aggregate_groups(records, group_by=["type"], aggregation=AggregationType.SUM)
    assert rows == [
        {"group": {"type": "transaction"}, "count": 3, "value": 40},
        {"group": {"type": "gas_fee"}, "count": 1, "value": 7},
    ]


def test_aggregate_groups_without_group_by_counts_everything():
    records = [make_event(f"x{i}", ms(2024, 5, 1) + i) for i in range(3)]
    assert aggregate_groups(records) == [{"group": {}, "count": 3, "value": 3}]


def test_aggregate_groups_unresolved_group_value_is_none():
    records = [
        make_event("a", ms(2024, 5, 1), data={"address": "A", "gas": 2}),
        make_event("b", ms(2024, 5, 1), data={"gas": 4}),
    ]
    rows = aggregate_groups(
        records,
        group_by=["data.address"],
        aggregation=AggregationType.MAX,
        value_path="data.gas",
    )
    assert {"group": {"data.address": None}, "count": 1, "value": 4} in rows
    assert {"group": {"data.address": "A"}, "count": 1, "value": 2} in rows
