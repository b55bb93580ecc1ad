import pytest

from servstats.limits import (
    COUNTERS_AVAILABLE_HEADER,
    add_counters_available,
    read_limit_header,
)

KEY = "limit"


@pytest.mark.parametrize("value", [0, 1, 3, 100])
def test_reads_non_negative_limit(value):
    assert read_limit_header({KEY: str(value)}, KEY) == value


@pytest.mark.parametrize("raw", ["-20", "abc", "", "1.5", "3x", "99999999999"])
def test_invalid_or_negative_is_none(raw):
    assert read_limit_header({KEY: raw}, KEY) is None


def test_missing_key_or_headers():
    assert read_limit_header({}, KEY) is None
    assert read_limit_header(None, KEY) is None


def test_add_counters_available():
    headers = {}
    add_counters_available(headers, 3)
    assert headers == {"fb303_counters_available": "3"}
    assert COUNTERS_AVAILABLE_HEADER == "fb303_counters_available"


def test_add_does_not_overwrite():
    headers = {COUNTERS_AVAILABLE_HEADER: "1"}
    add_counters_available(headers, 3)
    assert headers[COUNTERS_AVAILABLE_HEADER] == "1"


def test_add_round_trips_through_read():
    headers = {}
    add_counters_available(headers, 42)
    assert read_limit_header(headers, COUNTERS_AVAILABLE_HEADER) == 42


def test_add_with_no_headers_is_noop():
    assert add_counters_available(None, 3) is None