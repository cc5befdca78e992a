"""Local reminders fired the day before a task is due."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from dateutil import tz
from dateutil.relativedelta import relativedelta

from .dates import Clock, utc_now

logger = logging.getLogger(__name__)

REMINDER_TITLE = "Maintenance Reminder"


@dataclass(frozen=True)
class Reminder:
    title: str
    body: str
    fire_at: datetime


class ReminderScheduler:
    """
    Keeps the list of pending local reminders.

    A reminder fires ``days_before`` days ahead of the due instant at
    ``hour`` o'clock local time. Reminders whose fire time has already
    passed are not scheduled.
    """

    def __init__(
        self,
        hour: int = 9,
        days_before: int = 1,
        clock: Clock = utc_now,
        local_tz=None,
    ):
        self.hour = hour
        self.days_before = days_before
        self.clock = clock
        self.local_tz = local_tz or tz.tzlocal()
        self.reminders: List[Reminder] = []

    def fire_time(self, due: datetime) -> datetime:
        local_due = due.astimezone(self.local_tz)
        fire_at = local_due - relativedelta(days=self.days_before)
        return fire_at.replace(hour=self.hour, minute=0, second=0, microsecond=0)

    def schedule_reminder(self, title: str, due: datetime) -> Optional[Reminder]:
        fire_at = self.fire_time(due)
        if fire_at < self.clock():
            logger.debug("Skipping reminder for %s: %s already passed", title, fire_at)
            return None
        reminder = Reminder(
            title=REMINDER_TITLE,
            body=f"Tomorrow: {title} is due. Tap to check.",
            fire_at=fire_at,
        )
        self.reminders.append(reminder)
        logger.info("Reminder for %s set at %s", title, fire_at.isoformat())
        return reminder

    def cancel_all_reminders(self) -> None:
        logger.info("Cancelling %d reminder(s)", len(self.reminders))
        self.reminders.clear()
