#!/usr/bin/env python3
"""Tests for the local reminder scheduler."""

from datetime import datetime, timedelta, timezone

from maintsync import ReminderScheduler

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def scheduler(**kwargs):
    return ReminderScheduler(clock=lambda: NOW, local_tz=timezone.utc, **kwargs)


class TestFireTime:
    """Tests for ReminderScheduler.fire_time."""

    def test_day_before_at_nine(self):
        due = datetime(2025, 12, 12, 15, 30, tzinfo=timezone.utc)
        assert scheduler().fire_time(due) == datetime(2025, 12, 11, 9, 0, tzinfo=timezone.utc)

    def test_custom_hour_and_lead(self):
        due = datetime(2025, 12, 12, tzinfo=timezone.utc)
        fire = scheduler(hour=18, days_before=3).fire_time(due)
        assert fire == datetime(2025, 12, 9, 18, 0, tzinfo=timezone.utc)

    def test_local_timezone(self):
        """The hour is local wall-clock time."""
        manila = timezone(timedelta(hours=8))
        rs = ReminderScheduler(clock=lambda: NOW, local_tz=manila)
        due = datetime(2025, 12, 12, 20, 0, tzinfo=timezone.utc)  # Dec 13 04:00 in Manila
        assert rs.fire_time(due) == datetime(2025, 12, 12, 9, 0, tzinfo=manila)


class TestScheduleReminder:
    """Tests for scheduling and cancelling reminders."""

    def test_schedules(self):
        rs = scheduler()
        reminder = rs.schedule_reminder("Oil Change", datetime(2025, 12, 12, tzinfo=timezone.utc))
        assert reminder.title == "Maintenance Reminder"
        assert reminder.body == "Tomorrow: Oil Change is due. Tap to check."
        assert rs.reminders == [reminder]

    def test_past_fire_time_skipped(self):
        rs = scheduler()
        assert rs.schedule_reminder("Oil Change", datetime(2025, 6, 1, 18, 0, tzinfo=timezone.utc)) is None
        assert rs.reminders == []

    def test_cancel_all(self):
        rs = scheduler()
        rs.schedule_reminder("A", datetime(2025, 12, 12, tzinfo=timezone.utc))
        rs.schedule_reminder("B", datetime(2026, 1, 10, tzinfo=timezone.utc))
        rs.cancel_all_reminders()
        assert rs.reminders == []
