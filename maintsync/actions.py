"""
Write intents for a vehicle document: complete, add, edit and delete tasks,
log or delete history records, update mileage, save vehicle details.

Every operation reads the current document, rebuilds the affected list and
writes the whole list back. Nothing is returned from the store; the
reconciler sees the result through its next notification.
"""

import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from .dates import Clock, normalize_or_now, utc_now
from .errors import UnknownTaskError, ValidationError, WriteFailure
from .history_item import HistoryItem, parse_cost
from .reminders import ReminderScheduler
from .schedule_item import DEFAULT_COLOR, DEFAULT_ICON, ScheduleItem, parse_km
from .store import DocumentStore
from .transitions import complete_task, make_history_id
from .vehicle import HISTORY_FIELD, UPCOMING_FIELD, Vehicle

logger = logging.getLogger(__name__)


class ScheduleActions:
    """Issues writes against one vehicle document."""

    def __init__(
        self,
        store: DocumentStore,
        key: str,
        reminders: Optional[ReminderScheduler] = None,
        clock: Clock = utc_now,
    ):
        self.store = store
        self.key = key
        self.reminders = reminders
        self.clock = clock

    # -- reading -----------------------------------------------------------

    def _load(self) -> Tuple[Dict[str, Any], List[ScheduleItem], List[HistoryItem]]:
        doc = self.store.get(self.key)
        if doc is None:
            raise WriteFailure(f"No vehicle document for '{self.key}'")
        upcoming = [ScheduleItem.from_dict(d, self.clock) for d in doc.get(UPCOMING_FIELD) or []]
        history = [HistoryItem.from_dict(d, self.clock) for d in doc.get(HISTORY_FIELD) or []]
        return doc, upcoming, history

    def _find_task(self, upcoming: List[ScheduleItem], task_id: str) -> ScheduleItem:
        for task in upcoming:
            if task.id == task_id:
                return task
        raise UnknownTaskError(f"No upcoming task with id '{task_id}'")

    # -- writing -----------------------------------------------------------

    def _write_upcoming(self, items: List[ScheduleItem]) -> None:
        self.store.update_field(self.key, UPCOMING_FIELD, [t.to_dict() for t in items])

    def _write_history(self, items: List[HistoryItem]) -> None:
        self.store.update_field(self.key, HISTORY_FIELD, [h.to_dict() for h in items])

    def _new_task_id(self, upcoming: List[ScheduleItem]) -> str:
        taken = {t.id for t in upcoming}
        stamp = int(time.time() * 1000)
        while str(stamp) in taken:
            stamp += 1
        return str(stamp)

    # -- upcoming tasks ----------------------------------------------------

    def complete_task(
        self,
        task: Union[str, ScheduleItem],
        shop: str = "",
        cost: Any = None,
        completed_at: Any = None,
        mileage: Any = None,
        service: Optional[str] = None,
    ) -> HistoryItem:
        """
        Record a task as done: append a history record, then drop the task
        from the upcoming set.

        These are two separate writes. If the second one fails the task is
        left in both sets until the upcoming list is written again; the
        WriteFailure still reaches the caller.
        """
        _, upcoming, history = self._load()
        if isinstance(task, ScheduleItem):
            target = task
        else:
            target = self._find_task(upcoming, task)

        new_upcoming, new_history, record = complete_task(
            upcoming,
            history,
            target,
            shop=shop,
            cost=cost,
            completed_at=normalize_or_now(completed_at, self.clock),
            mileage=parse_km(mileage),
            service=service,
        )

        self._write_history(new_history)
        if len(new_upcoming) != len(upcoming):
            self._write_upcoming(new_upcoming)
        logger.info("Completed %s (%s) as %s", target.service, target.id, record.id)
        return record

    def add_task(
        self,
        service: str,
        due_km: Any,
        due: Any = None,
        subtitle: Optional[str] = None,
        icon: str = DEFAULT_ICON,
        color: str = DEFAULT_COLOR,
    ) -> ScheduleItem:
        """Add a new upcoming task. Service name and due mileage are required."""
        errors = {}
        if not service or not service.strip():
            errors["service"] = "Please enter a service name."
        km = parse_km(due_km)
        if km is None:
            errors["dueKm"] = "Please enter the due mileage."
        elif km < 0:
            errors["dueKm"] = "Due mileage cannot be negative."
        if errors:
            raise ValidationError(errors)

        _, upcoming, _ = self._load()
        item = ScheduleItem(
            id=self._new_task_id(upcoming),
            service=service.strip(),
            subtitle=subtitle,
            due=normalize_or_now(due, self.clock),
            due_km=km,
            icon=icon or DEFAULT_ICON,
            color=color or DEFAULT_COLOR,
        )
        self._write_upcoming(upcoming + [item])
        if self.reminders is not None:
            self.reminders.schedule_reminder(item.service, item.due)
        logger.info("Added task %s (%s)", item.service, item.id)
        return item

    def update_task(
        self,
        task_id: str,
        service: Optional[str] = None,
        due: Any = None,
        due_km: Any = None,
        subtitle: Optional[str] = None,
    ) -> ScheduleItem:
        """Change fields of an upcoming task; id, icon and color are kept."""
        if service is not None and not service.strip():
            raise ValidationError({"service": "Please enter a service name."})

        _, upcoming, _ = self._load()
        task = self._find_task(upcoming, task_id)
        changes: Dict[str, Any] = {}
        if service is not None:
            changes["service"] = service.strip()
        if subtitle is not None:
            changes["subtitle"] = subtitle
        if due is not None:
            changes["due"] = normalize_or_now(due, self.clock)
            changes["date_label"] = None
        if due_km is not None:
            km = parse_km(due_km)
            if km is None:
                raise ValidationError({"dueKm": "Due mileage must be a number."})
            changes["due_km"] = km
        updated = task.with_changes(**changes)

        self._write_upcoming([updated if t.id == task_id else t for t in upcoming])
        return updated

    def delete_task(self, task_id: str) -> None:
        _, upcoming, _ = self._load()
        self._find_task(upcoming, task_id)
        remaining = [t for t in upcoming if t.id != task_id]
        self._write_upcoming(remaining)
        self._resync_reminders(remaining)
        logger.info("Deleted task %s", task_id)

    def _resync_reminders(self, upcoming: List[ScheduleItem]) -> None:
        if self.reminders is None:
            return
        self.reminders.cancel_all_reminders()
        for task in upcoming:
            self.reminders.schedule_reminder(task.service, task.due)

    # -- history -----------------------------------------------------------

    def log_service(
        self,
        service: str,
        shop: str = "",
        cost: Any = None,
        completed_at: Any = None,
        mileage: Any = None,
    ) -> HistoryItem:
        """Add a history record that did not come from an upcoming task."""
        if not service or not service.strip():
            raise ValidationError({"service": "Please enter a service name."})

        _, _, history = self._load()
        record = HistoryItem(
            id=make_history_id(),
            service=service.strip(),
            completed_at=normalize_or_now(completed_at, self.clock),
            shop=shop or "",
            cost=parse_cost(cost),
            mileage=parse_km(mileage),
        )
        self._write_history(history + [record])
        logger.info("Logged %s as %s", record.service, record.id)
        return record

    def delete_history(self, history_id: str) -> None:
        _, _, history = self._load()
        remaining = [h for h in history if h.id != history_id]
        if len(remaining) == len(history):
            raise UnknownTaskError(f"No history record with id '{history_id}'")
        self._write_history(remaining)

    # -- vehicle -----------------------------------------------------------

    def update_mileage(self, mileage: Any) -> int:
        km = parse_km(mileage)
        if km is None:
            raise ValidationError({"currentMileage": "Mileage must be a valid number."})
        if km < 0:
            raise ValidationError({"currentMileage": "Mileage cannot be negative."})
        self.store.update_field(self.key, "currentMileage", km)
        return km

    def save_vehicle(self, vehicle: Vehicle, updated_at: Optional[datetime] = None) -> None:
        """Merge the vehicle's attributes into its document (create or edit)."""
        vehicle.updated_at = updated_at or self.clock()
        self.store.merge_write(self.key, vehicle.to_document())
        logger.info("Saved vehicle %s", vehicle.display_name)
