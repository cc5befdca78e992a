"""ScheduleItem class for upcoming (pending) service tasks."""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Optional

from .dates import Clock, format_display, normalize_or_now, utc_now
from .status import TaskStatus

DEFAULT_ICON = "wrench"
DEFAULT_COLOR = "#4E73DF"


def parse_km(value: Any) -> Optional[int]:
    """Leniently parse a mileage value ("53200", 53200.0, 53200) to an int."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(str(value).strip().replace(",", "")))
    except (TypeError, ValueError, OverflowError):
        return None


@dataclass(frozen=True)
class ScheduleItem:
    """A pending maintenance task in the vehicle's upcoming set."""

    id: str
    service: str
    due: datetime
    subtitle: Optional[str] = None
    due_km: Optional[int] = None
    icon: str = DEFAULT_ICON
    color: str = DEFAULT_COLOR
    status: TaskStatus = TaskStatus.PENDING
    date_label: Optional[str] = None

    @property
    def display_date(self) -> str:
        return self.date_label or format_display(self.due)

    def with_changes(self, **changes: Any) -> "ScheduleItem":
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, dct: Dict[str, Any], clock: Clock = utc_now) -> "ScheduleItem":
        """Build from a stored dict; older records keep the due date in 'dueDate'."""
        due = normalize_or_now(dct.get("dateObject") or dct.get("dueDate"), clock)
        return cls(
            id=str(dct.get("id", "")),
            service=dct.get("service") or "",
            due=due,
            subtitle=dct.get("subtitle"),
            due_km=parse_km(dct.get("dueKm")),
            icon=dct.get("icon") or DEFAULT_ICON,
            color=dct.get("color") or DEFAULT_COLOR,
            date_label=dct.get("date") or dct.get("dueDate"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the stored dict format, omitting empty optionals."""
        d: Dict[str, Any] = {"id": self.id, "service": self.service}
        if self.subtitle is not None:
            d["subtitle"] = self.subtitle
        d["date"] = self.display_date
        d["dateObject"] = self.due.isoformat()
        if self.due_km is not None:
            d["dueKm"] = self.due_km
        d["icon"] = self.icon
        d["color"] = self.color
        d["status"] = self.status.value
        return d
