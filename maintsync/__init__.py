"""
Vehicle maintenance schedule synchronization.

This package keeps one vehicle document per user in sync with a
dashboard view:
- dates: Normalizes the many stored date shapes into aware datetimes
- ScheduleItem / HistoryItem / Vehicle: Document records
- generate_default_schedule: Baseline tasks for an empty schedule
- sort_upcoming / sort_history: Display ordering
- progress_absolute / progress_windowed: Mileage progress policies
- SnapshotReconciler: Turns store notifications into DashboardViews
- complete_task / ScheduleActions: Write intents against the store
- VehicleWizard: Staged validation of new vehicle data
"""

from .errors import (
    MaintSyncError,
    SubscriptionError,
    InvalidDateError,
    ValidationError,
    WriteFailure,
    UnknownTaskError,
)
from .status import TaskStatus
from .dates import DateKind, classify, normalize, normalize_or_now
from .vehicle import Vehicle
from .schedule_item import ScheduleItem
from .history_item import HistoryItem
from .dashboard import DashboardView
from .calculations import progress_absolute, progress_windowed
from .defaults import generate_default_schedule
from .sorting import sort_upcoming, sort_history
from .transitions import complete_task, make_history_id
from .store import DocumentStore, MemoryDocumentStore, YamlDocumentStore
from .reminders import Reminder, ReminderScheduler
from .reconciler import ReconcileState, SnapshotReconciler
from .actions import ScheduleActions
from .wizard import VehicleWizard, validate_stage
from .config import Config, load_config

__all__ = [
    "MaintSyncError",
    "SubscriptionError",
    "InvalidDateError",
    "ValidationError",
    "WriteFailure",
    "UnknownTaskError",
    "TaskStatus",
    "DateKind",
    "classify",
    "normalize",
    "normalize_or_now",
    "Vehicle",
    "ScheduleItem",
    "HistoryItem",
    "DashboardView",
    "progress_absolute",
    "progress_windowed",
    "generate_default_schedule",
    "sort_upcoming",
    "sort_history",
    "complete_task",
    "make_history_id",
    "DocumentStore",
    "MemoryDocumentStore",
    "YamlDocumentStore",
    "Reminder",
    "ReminderScheduler",
    "ReconcileState",
    "SnapshotReconciler",
    "ScheduleActions",
    "VehicleWizard",
    "validate_stage",
    "Config",
    "load_config",
]
