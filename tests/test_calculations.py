#!/usr/bin/env python3
"""Tests for calculation helper functions."""
import pytest
from datetime import datetime, timezone
from dateutil.relativedelta import relativedelta

from maintsync import progress_absolute, progress_windowed
from maintsync.calculations import calc_due_date, calc_due_km


class TestCalcDueKm:
    """Tests for calc_due_km helper function."""

    def test_with_current_mileage(self):
        """current + interval when odometer is known."""
        assert calc_due_km(53200) == 58200

    def test_without_current_mileage(self):
        """Just the interval when odometer is unknown."""
        assert calc_due_km(None) == 5000

    def test_zero_mileage_is_known(self):
        assert calc_due_km(0) == 5000

    def test_custom_interval(self):
        assert calc_due_km(10000, interval=7500) == 17500


class TestCalcDueDate:
    """Tests for calc_due_date helper function."""

    now = datetime(2025, 1, 31, tzinfo=timezone.utc)

    def test_known_date_wins(self):
        known = datetime(2025, 3, 1, tzinfo=timezone.utc)
        assert calc_due_date(known, self.now, months=6) == known

    def test_months_from_now(self):
        assert calc_due_date(None, self.now, months=6) == datetime(
            2025, 7, 31, tzinfo=timezone.utc
        )

    def test_month_end_clamps(self):
        """relativedelta clamps to the last day of shorter months."""
        assert calc_due_date(None, self.now, months=1) == datetime(
            2025, 2, 28, tzinfo=timezone.utc
        )

    def test_years_from_now(self):
        assert calc_due_date(None, self.now, years=1) == self.now + relativedelta(years=1)


class TestProgressAbsolute:
    """Tests for the absolute progress policy."""

    def test_partial(self):
        assert progress_absolute(53200, 55000) == pytest.approx(96.727, abs=0.01)

    def test_capped_at_100(self):
        assert progress_absolute(60000, 55000) == 100

    def test_zero_target(self):
        """No division by zero."""
        assert progress_absolute(60000, 0) == 0

    def test_missing_values(self):
        assert progress_absolute(60000, None) == 0
        assert progress_absolute(None, 55000) == 0


class TestProgressWindowed:
    """Tests for the windowed progress policy."""

    def test_partial(self):
        """Window 50000..55000, at 53200 -> 64%."""
        assert progress_windowed(53200, 55000) == pytest.approx(64.0)

    def test_before_window(self):
        assert progress_windowed(40000, 55000) == 0

    def test_past_target(self):
        assert progress_windowed(56000, 55000) == 100

    def test_zero_target(self):
        assert progress_windowed(53200, 0) == 0

    def test_policies_disagree(self):
        """Same inputs, different answers; both are in use."""
        assert progress_absolute(53200, 55000) != progress_windowed(53200, 55000)

    def test_custom_window(self):
        assert progress_windowed(52500, 55000, window=10000) == pytest.approx(75.0)
