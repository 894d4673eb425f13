from __future__ import annotations

import itertools
import random

import pytest

from eventures.core.aggregate import PointAggregator, aggregate, parse_coordinate
from eventures.core.models import GeoPoint
from eventures.errors import MalformedCoordinate


def _rec(lat, lng, **extra):
    return {"lat": lat, "lng": lng, **extra}


def test_duplicate_coordinates_collapse_with_counts():
    points = aggregate([_rec("10.0", "20.0"), _rec("10.0", "20.0"), _rec("30.0", "40.0")])

    assert [p.point for p in points] == [GeoPoint(lon=20.0, lat=10.0), GeoPoint(lon=40.0, lat=30.0)]
    assert [p.occurrences for p in points] == [2, 1]


def test_output_is_sorted_by_coordinate_text():
    points = aggregate([_rec("9.5", "1"), _rec("-1", "5"), _rec("10", "2"), _rec("10", "10")])

    # lexicographic on (lat text, lng text), not numeric
    assert [p.key for p in points] == [("-1", "5"), ("10", "10"), ("10", "2"), ("9.5", "1")]


def test_aggregation_is_order_independent():
    records = [_rec("10.0", "20.0")] * 3 + [_rec("-41.3", "174.8")] * 2 + [_rec("30.0", "40.0")]
    expected = aggregate(records)

    for perm in itertools.permutations(records):
        assert aggregate(list(perm)) == expected


def test_counts_sum_to_parsable_records():
    rng = random.Random(7)
    coords = [("1.0", "2.0"), ("1.0", "2.5"), ("-3", "4"), ("bad", "4"), ("5", "")]
    records = [_rec(*rng.choice(coords)) for _ in range(200)]
    parsable = [r for r in records if r["lat"] not in ("bad",) and r["lng"] != ""]

    result = PointAggregator().run(records)

    assert sum(p.occurrences for p in result.points) == len(parsable)
    distinct = len({(r["lat"], r["lng"]) for r in parsable})
    assert sum(p.occurrences - 1 for p in result.points if p.occurrences > 1) == len(parsable) - distinct
    assert result.dropped == len(records) - len(parsable)
    assert result.accepted == len(parsable)


def test_textually_different_coordinates_stay_separate():
    points = aggregate([_rec("10.0", "20.0"), _rec("10.00", "20.0")])

    assert len(points) == 2
    assert points[0].point == points[1].point
    assert all(p.occurrences == 1 for p in points)


def test_empty_input_yields_no_points():
    result = PointAggregator().run([])
    assert result.points == []
    assert result.total == 0
    assert result.dropped == 0


@pytest.mark.parametrize(
    "record",
    [
        {"lng": "20.0"},
        {"lat": "10.0"},
        _rec("", "20.0"),
        _rec("ten", "20.0"),
        _rec("10.0", "nan"),
        _rec("inf", "20.0"),
        _rec("1_0", "20.0"),
        _rec("10.0abc", "20.0"),
    ],
)
def test_malformed_records_are_dropped_and_counted(record):
    agg = PointAggregator()
    result = agg.run([record, _rec("1", "2")])

    assert [p.key for p in result.points] == [("1", "2")]
    assert result.dropped == 1
    assert agg.dropped == 1


def test_dropped_counter_accumulates_across_passes():
    agg = PointAggregator()
    agg.aggregate([_rec("x", "1")])
    agg.aggregate([_rec("1", "y"), _rec("1", "y")])
    assert agg.dropped == 3


def test_all_records_malformed_gives_empty_list():
    assert aggregate([_rec("a", "b"), _rec("c", "d")]) == []


def test_parse_coordinate_accepts_plain_decimals():
    assert parse_coordinate("lat", "-41.2923") == pytest.approx(-41.2923)
    assert parse_coordinate("lat", " 174 ") == 174.0
    assert parse_coordinate("lat", ".5") == 0.5
    assert parse_coordinate("lat", "1e-3") == pytest.approx(0.001)


def test_parse_coordinate_error_names_field():
    with pytest.raises(MalformedCoordinate) as exc:
        parse_coordinate("lng", "east")
    assert exc.value.field == "lng"
    assert exc.value.value == "east"
    assert isinstance(exc.value, ValueError)
