"""Ordering of upcoming tasks and history records."""

from typing import Iterable, List

from .history_item import HistoryItem
from .schedule_item import ScheduleItem


def sort_upcoming(items: Iterable[ScheduleItem]) -> List[ScheduleItem]:
    """Soonest due first. Ties keep their input order."""
    return sorted(items, key=lambda t: t.due)


def sort_history(items: Iterable[HistoryItem]) -> List[HistoryItem]:
    """Most recent completion first. Ties keep their input order."""
    # sorted(reverse=True) preserves the relative order of equal keys
    return sorted(items, key=lambda h: h.completed_at, reverse=True)
