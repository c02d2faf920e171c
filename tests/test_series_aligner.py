"""Tests for positional series alignment."""
from conftest import daily_series
from portfolio_backend.services.series_aligner import SeriesAligner


def test_empty_mapping_gives_empty_axis():
    aligned = SeriesAligner().align({})

    assert aligned.is_empty
    assert aligned.prices == {}


def test_first_series_is_canonical_axis():
    long = daily_series("B", [float(i) for i in range(1, 11)])
    short = daily_series("A", [100.0] * 5)

    aligned = SeriesAligner().align({"B": long, "A": short})

    assert aligned.axis == long.timestamps
    assert aligned.prices["B"] == long.values


def test_shorter_series_is_zero_filled_positionally():
    """Positions past the end of a shorter series read as price 0."""
    long = daily_series("B", [200.0] * 10)
    short = daily_series("A", [100.0] * 5)

    aligned = SeriesAligner().align({"B": long, "A": short})

    assert aligned.prices["A"] == [100.0] * 5 + [0.0] * 5
    assert aligned.price_at("A", 7) == 0.0


def test_longer_series_is_truncated_to_axis():
    short = daily_series("A", [1.0, 2.0, 3.0])
    long = daily_series("B", [5.0, 6.0, 7.0, 8.0])

    aligned = SeriesAligner().align({"A": short, "B": long})

    assert len(aligned.axis) == 3
    assert aligned.prices["B"] == [5.0, 6.0, 7.0]


def test_indexes_by_position_not_timestamp():
    """Different calendars are still matched by array index."""
    a = daily_series("A", [1.0, 2.0])
    b = daily_series("B", [10.0, 20.0], start=a.points[0].timestamp.replace(year=2020))

    aligned = SeriesAligner().align({"A": a, "B": b})

    assert aligned.prices["B"] == [10.0, 20.0]
