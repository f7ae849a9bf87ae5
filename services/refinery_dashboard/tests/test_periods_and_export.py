from datetime import date, datetime, timezone

import pytest

from utils.export import csv_response, export_filename, rows_to_csv
from utils.periods import (
    filter_by_period,
    in_interval,
    month_range_bounds,
    resolve_period,
    to_naive_utc,
)

NOW = datetime(2024, 3, 15, 10, 30)


def test_resolve_today_is_the_whole_day() -> None:
    start, end = resolve_period("today", now=NOW)

    assert start == datetime(2024, 3, 15)
    assert end.date() == date(2024, 3, 15)
    assert end.hour == 23 and end.minute == 59


def test_resolve_month_handles_leap_february() -> None:
    start, end = resolve_period("2024-02", now=NOW)

    assert start == datetime(2024, 2, 1)
    assert end.date() == date(2024, 2, 29)


@pytest.mark.parametrize("period", ["2024-13", "march", "2024/03", "24-03"])
def test_resolve_rejects_bad_selectors(period) -> None:
    with pytest.raises(ValueError):
        resolve_period(period, now=NOW)


def test_month_range_must_be_ordered() -> None:
    start, end = month_range_bounds("2024-01", "2024-03")
    assert start == datetime(2024, 1, 1)
    assert end.date() == date(2024, 3, 31)

    with pytest.raises(ValueError):
        month_range_bounds("2024-03", "2024-01")


def test_to_naive_utc_converts_aware_values() -> None:
    aware = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)
    assert to_naive_utc(aware) == datetime(2024, 3, 15, 12, 0)
    assert to_naive_utc(None) is None


def test_filter_by_period_drops_undated_rows() -> None:
    rows = [
        {"id": 1, "start_time": datetime(2024, 3, 15, 8)},
        {"id": 2, "start_time": "2024-03-15T22:00:00"},
        {"id": 3, "start_time": datetime(2024, 3, 14, 23, 59)},
        {"id": 4, "start_time": None},
        {"id": 5, "start_time": "not a date"},
    ]

    kept = filter_by_period(rows, "start_time", "today", now=NOW)

    assert [r["id"] for r in kept] == [1, 2]


def test_in_interval_accepts_dates() -> None:
    assert in_interval(date(2024, 3, 1), datetime(2024, 3, 1), datetime(2024, 3, 31))
    assert not in_interval(None, datetime(2024, 3, 1), datetime(2024, 3, 31))


def test_rows_to_csv_renders_blanks_and_zero() -> None:
    columns = [("name", "Name"), ("value", "Value"), ("note", "Note")]
    rows = [
        {"name": "pH", "value": 0, "note": None},
        {"name": "TA", "value": 12.5, "note": ""},
    ]

    assert rows_to_csv(rows, columns) == "Name,Value,Note\npH,0,\nTA,12.5,"


def test_rows_to_csv_does_not_quote() -> None:
    csv = rows_to_csv([{"reason": "pump, valve"}], [("reason", "Reason")])
    assert csv.splitlines()[1] == "pump, valve"


def test_export_filename_replaces_whitespace() -> None:
    assert export_filename("Water treatment data") == "Water_treatment_data.csv"


def test_csv_response_is_an_attachment() -> None:
    response = csv_response([], [("a", "A")], "Equipment data")

    assert response.media_type.startswith("text/csv")
    assert "Equipment_data.csv" in response.headers["content-disposition"]
    assert response.body == b"A"
