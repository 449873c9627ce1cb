import pytest

from fleetsim.errors import ConfigurationError
from fleetsim.services.simulation.clock import OperatingWindow, format_seconds, parse_time_to_seconds


def test_parse_time_to_seconds():
    assert parse_time_to_seconds("09:00") == 32400
    assert parse_time_to_seconds("09:00:30") == 32430
    assert parse_time_to_seconds(" 23:59:59 ") == 86399


@pytest.mark.parametrize("value", ["9", "09:60", "aa:bb", "1:2:3:4", "10:00:75"])
def test_parse_time_to_seconds_rejects_bad_values(value):
    with pytest.raises(ValueError):
        parse_time_to_seconds(value)


def test_format_seconds_wraps_past_midnight():
    assert format_seconds(32400) == "09:00:00"
    assert format_seconds(86400 + 3661) == "01:01:01"


def test_window_within_a_day():
    window = OperatingWindow.from_strings("09:00", "18:00")

    assert (window.start, window.end) == (32400, 64800)
    assert window.duration == 9 * 3600
    assert not window.wraps_midnight
    assert window.align(36000) == 36000
    assert window.contains(64800)
    assert not window.contains(64801)


def test_window_past_midnight_shifts_end_and_aligns_early_times():
    window = OperatingWindow.from_strings("22:00", "02:00")

    assert window.end == 26 * 3600
    assert window.duration == 4 * 3600
    assert window.wraps_midnight
    assert window.align(3600) == 25 * 3600
    assert window.align(23 * 3600) == 23 * 3600


def test_window_with_equal_bounds_spans_a_full_day():
    window = OperatingWindow.from_strings("08:00", "08:00")

    assert window.duration == 86400


@pytest.mark.parametrize("start,end", [(None, "10:00"), ("09:00", ""), ("09:00", "25:99")])
def test_window_configuration_errors(start, end):
    with pytest.raises(ConfigurationError):
        OperatingWindow.from_strings(start, end)
