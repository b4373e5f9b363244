"""Unit tests for peak_windows.py — "HH:MM-HH:MM" range matching."""

import pytest

from peak_windows import _parse_clock, is_peak_now, is_within, parse_window
from temporal import get_time_context


class TestParseClock:
    def test_hh_mm(self):
        assert _parse_clock("07:30") == 450

    def test_bare_hour(self):
        assert _parse_clock("7") == 420

    def test_whitespace(self):
        assert _parse_clock(" 18:00 ") == 1080

    @pytest.mark.parametrize("value", ["", "ab:cd", "7:30:00", "25:00", "10:75", ":30"])
    def test_malformed_raises(self, value):
        with pytest.raises(ValueError):
            _parse_clock(value)


class TestParseWindow:
    def test_range(self):
        assert parse_window("07:00-09:30") == (420, 570)

    def test_bare_hours(self):
        assert parse_window("7-9") == (420, 540)

    def test_no_separator_is_ignored(self):
        assert parse_window("07:00") is None

    def test_malformed_side_raises(self):
        with pytest.raises(ValueError):
            parse_window("07:00-nine")


class TestIsWithin:
    def test_inside(self):
        assert is_within(8, 15, ["07:00-09:00"])

    def test_inclusive_start_and_end(self):
        assert is_within(7, 0, ["07:00-09:00"])
        assert is_within(9, 0, ["07:00-09:00"])

    def test_outside(self):
        assert not is_within(9, 1, ["07:00-09:00"])
        assert not is_within(6, 59, ["07:00-09:00"])

    def test_any_range_matches(self):
        assert is_within(12, 0, ["07:00-09:00", "11:30-13:00"])

    def test_empty_or_none(self):
        assert not is_within(8, 0, [])
        assert not is_within(8, 0, None)

    def test_entries_without_separator_are_skipped(self):
        assert is_within(8, 0, ["junk", "07:00-09:00"])

    def test_malformed_range_raises(self):
        with pytest.raises(ValueError):
            is_within(8, 0, ["07:xx-09:00"])


class TestMidnightWraparound:
    """Ranges that cross midnight are not matched. This documents the
    current limitation; change these tests if wraparound support lands."""

    def test_late_evening_not_matched(self):
        assert not is_within(23, 0, ["22:00-02:00"])

    def test_early_morning_not_matched(self):
        assert not is_within(1, 0, ["22:00-02:00"])

    def test_split_ranges_work_instead(self):
        assert is_within(23, 0, ["22:00-23:59", "00:00-02:00"])
        assert is_within(1, 0, ["22:00-23:59", "00:00-02:00"])


class TestIsPeakNow:
    def test_uses_context_time(self, fixed_clock):
        ctx = get_time_context(fixed_clock(7, 30))
        assert is_peak_now(("07:00-09:00",), ctx)
        assert not is_peak_now(("10:00-11:00",), ctx)
