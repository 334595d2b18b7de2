from datetime import date, datetime, timezone

import pytest

from binda.utils.timezone import (
    ensure_utc,
    is_ambiguous_local_time,
    is_nonexistent_local_time,
    isoformat_utc,
    parse_instant,
    parse_time_on_date,
    to_tenant_time,
    to_utc,
)


def test_to_utc_interprets_wall_clock_in_zone():
    assert to_utc("2024-06-10T10:00:00", "Africa/Lagos") == "2024-06-10T09:00:00Z"


def test_to_utc_honours_explicit_offset():
    assert to_utc("2024-06-10T10:00:00+02:00", "Africa/Lagos") == "2024-06-10T08:00:00Z"


@pytest.mark.parametrize(
    "value,tz",
    [("not a date", "Africa/Lagos"), ("2024-06-10T10:00:00", "Mars/Olympus_Mons"), ("", "UTC")],
)
def test_to_utc_returns_empty_string_on_bad_input(value, tz):
    assert to_utc(value, tz) == ""


def test_round_trip_outside_dst_transitions():
    local = "2024-03-15T14:30:00"
    utc = to_utc(local, "America/New_York")
    assert to_tenant_time(utc, "America/New_York").replace(tzinfo=None).isoformat() == local


def test_ambiguous_fall_back_time_is_detected():
    # 01:30 happens twice in New York on 2024-11-03
    assert is_ambiguous_local_time(datetime(2024, 11, 3, 1, 30), "America/New_York")
    assert not is_nonexistent_local_time(datetime(2024, 11, 3, 1, 30), "America/New_York")
    # The first occurrence (EDT) is used
    assert to_utc("2024-11-03T01:30:00", "America/New_York") == "2024-11-03T05:30:00Z"


def test_spring_forward_gap_is_detected():
    assert is_nonexistent_local_time(datetime(2024, 3, 10, 2, 30), "America/New_York")
    assert not is_ambiguous_local_time(datetime(2024, 3, 10, 2, 30), "America/New_York")


def test_ordinary_time_is_neither_ambiguous_nor_missing():
    moment = datetime(2024, 6, 10, 10, 0)
    assert not is_ambiguous_local_time(moment, "Africa/Lagos")
    assert not is_nonexistent_local_time(moment, "Africa/Lagos")


def test_parse_time_on_date_materializes_working_hours():
    start = parse_time_on_date("09:00", date(2024, 6, 10), "Africa/Lagos")
    assert isoformat_utc(start) == "2024-06-10T08:00:00Z"

    end_of_day = parse_time_on_date("24:00", date(2024, 6, 10), "Africa/Lagos")
    assert isoformat_utc(end_of_day) == "2024-06-10T23:00:00Z"


def test_parse_time_on_date_rejects_invalid_times():
    with pytest.raises(ValueError):
        parse_time_on_date("25:00", date(2024, 6, 10), "UTC")


def test_naive_values_from_the_store_are_utc():
    naive = datetime(2024, 6, 10, 8, 0)
    assert ensure_utc(naive) == datetime(2024, 6, 10, 8, 0, tzinfo=timezone.utc)
    assert parse_instant("2024-06-10T08:00:00Z") == datetime(2024, 6, 10, 8, 0, tzinfo=timezone.utc)
