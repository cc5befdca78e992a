"""DashboardView - the value handed to presentation after each reconciliation."""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .history_item import HistoryItem
from .schedule_item import ScheduleItem
from .vehicle import Vehicle


@dataclass(frozen=True)
class DashboardView:
    """Snapshot of the vehicle's schedule, sorted and ready to render."""

    vehicle_present: bool
    needs_setup: bool = False
    loading: bool = False
    load_failed: bool = False
    error: Optional[str] = None
    vehicle: Optional[Vehicle] = None
    upcoming_tasks: Tuple[ScheduleItem, ...] = ()
    recent_history: Tuple[HistoryItem, ...] = ()

    @classmethod
    def setup_required(cls) -> "DashboardView":
        return cls(vehicle_present=False, needs_setup=True)

    @classmethod
    def failed(cls, message: str) -> "DashboardView":
        return cls(vehicle_present=False, load_failed=True, error=message)

    def get_task(self, task_id: str) -> Optional[ScheduleItem]:
        for task in self.upcoming_tasks:
            if task.id == task_id:
                return task
        return None

    @property
    def total_cost(self) -> float:
        return sum(h.cost for h in self.recent_history)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vehiclePresent": self.vehicle_present,
            "needsSetup": self.needs_setup,
            "loading": self.loading,
            "loadFailed": self.load_failed,
            "error": self.error,
            "vehicle": self.vehicle.to_document() if self.vehicle else None,
            "upcomingTasks": [t.to_dict() for t in self.upcoming_tasks],
            "recentHistory": [h.to_dict() for h in self.recent_history],
        }
