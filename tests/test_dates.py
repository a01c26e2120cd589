from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from localdb.dates import parse_datetime, to_iso


def test_aware_datetime_uses_utc_millis_form():
    value = datetime(2030, 1, 31, 21, 0, tzinfo=timezone(timedelta(hours=9)))
    assert to_iso(value) == "2030-01-31T12:00:00.000Z"
    assert parse_datetime(to_iso(value)) == value


@pytest.mark.parametrize(
    "value",
    [
        datetime(2000, 5, 17, 8, 30),
        datetime(2000, 5, 17, 8, 30, 0, 123456),
        datetime(2000, 5, 17, 8, 30, 0, 123456, tzinfo=timezone.utc),
        date(2000, 5, 17),
    ],
)
def test_written_values_read_back_equal(value):
    back = parse_datetime(to_iso(value))
    assert back == value
    assert type(back) is type(value)
    if isinstance(value, datetime):
        assert (back.tzinfo is None) == (value.tzinfo is None)


@pytest.mark.parametrize("raw", ["30", "1700000000", "t", "", "2000-13-45", "next tuesday"])
def test_non_iso_text_is_left_alone(raw):
    assert parse_datetime(raw) == raw


def test_non_strings_pass_through():
    assert parse_datetime(None) is None
    assert parse_datetime(30) == 30


def test_store_timestamps_have_millisecond_precision():
    from localdb.dates import now_iso

    stamp = now_iso()
    assert stamp.endswith("Z")
    assert len(stamp.split(".")[1]) == len("123Z")
