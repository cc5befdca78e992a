"""
SnapshotReconciler - turns vehicle document notifications into dashboard views.

Each notification from the store is one reconciliation cycle:

- no document         -> NO_DOCUMENT, view asks for vehicle setup
- empty upcoming set  -> EMPTY_SCHEDULE, default tasks are generated and
                         merge-written; the write comes back as a new cycle
- populated           -> POPULATED, items normalized, sorted, emitted
- subscription error  -> LOAD_FAILED, view reports the failure

Whatever happens, ``loading`` is False once a callback returns.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .calculations import SERVICE_INTERVAL_KM
from .dashboard import DashboardView
from .dates import Clock, utc_now
from .defaults import generate_default_schedule
from .errors import WriteFailure
from .history_item import HistoryItem
from .reminders import ReminderScheduler
from .schedule_item import ScheduleItem
from .sorting import sort_history, sort_upcoming
from .store import DocumentStore
from .vehicle import HISTORY_FIELD, UPCOMING_FIELD, Vehicle

logger = logging.getLogger(__name__)

ViewCallback = Callable[[DashboardView], None]


class ReconcileState(Enum):
    LOADING = "loading"
    NO_DOCUMENT = "no_document"
    EMPTY_SCHEDULE = "empty_schedule"
    POPULATED = "populated"
    LOAD_FAILED = "load_failed"


def build_view(doc: Dict[str, Any], clock: Clock = utc_now) -> DashboardView:
    """Normalize and sort both collections of a vehicle document."""
    upcoming = [ScheduleItem.from_dict(d, clock) for d in doc.get(UPCOMING_FIELD) or []]
    history = [HistoryItem.from_dict(d, clock) for d in doc.get(HISTORY_FIELD) or []]
    return DashboardView(
        vehicle_present=True,
        vehicle=Vehicle.from_document(doc, clock),
        upcoming_tasks=tuple(sort_upcoming(upcoming)),
        recent_history=tuple(sort_history(history)),
    )


class SnapshotReconciler:
    """Watches one vehicle document and keeps an up-to-date DashboardView."""

    def __init__(
        self,
        store: DocumentStore,
        key: str,
        on_view: Optional[ViewCallback] = None,
        reminders: Optional[ReminderScheduler] = None,
        clock: Clock = utc_now,
        interval_km: int = SERVICE_INTERVAL_KM,
    ):
        self.store = store
        self.key = key
        self.on_view = on_view
        self.reminders = reminders
        self.clock = clock
        self.interval_km = interval_km
        self.state = ReconcileState.LOADING
        self.loading = True
        self.view: Optional[DashboardView] = None
        self._defaults_pending = False
        self._unsubscribe: Optional[Callable[[], None]] = None

    def start(self) -> "SnapshotReconciler":
        """Subscribe to the document; the first cycle runs immediately."""
        if self._unsubscribe is None:
            self.loading = True
            self._unsubscribe = self.store.subscribe(
                self.key, self.handle_snapshot, self.handle_error
            )
        return self

    def stop(self) -> None:
        """Unsubscribe and forget all cycle state. Issued writes stay written."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.state = ReconcileState.LOADING
        self.view = None
        self._defaults_pending = False

    def __enter__(self) -> "SnapshotReconciler":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.stop()

    # -- callbacks ---------------------------------------------------------

    def handle_snapshot(self, doc: Optional[Dict[str, Any]]) -> None:
        try:
            if doc is None:
                self._set_state(ReconcileState.NO_DOCUMENT)
                self._defaults_pending = False
                self._emit(DashboardView.setup_required())
            elif not doc.get(UPCOMING_FIELD):
                self._set_state(ReconcileState.EMPTY_SCHEDULE)
                view = self._fill_defaults(doc)
                # A store that notifies synchronously may already have
                # delivered the populated document
                if self.state is ReconcileState.EMPTY_SCHEDULE:
                    self._emit(view)
            else:
                self._set_state(ReconcileState.POPULATED)
                self._defaults_pending = False
                self._emit(build_view(doc, self.clock))
        finally:
            self.loading = False

    def handle_error(self, error: Exception) -> None:
        try:
            logger.error("Error listening to vehicle %s: %s", self.key, error)
            self._set_state(ReconcileState.LOAD_FAILED)
            self._emit(DashboardView.failed(str(error)))
        finally:
            self.loading = False

    # -- internals ---------------------------------------------------------

    def _fill_defaults(self, doc: Dict[str, Any]) -> DashboardView:
        view = build_view(doc, self.clock)
        if self._defaults_pending:
            # Our earlier write has not come back yet
            logger.debug("Defaults already requested for %s", self.key)
            return view

        defaults = generate_default_schedule(
            view.vehicle, now=self.clock(), interval_km=self.interval_km
        )
        self._defaults_pending = True
        try:
            self.store.merge_write(
                self.key, {UPCOMING_FIELD: [item.to_dict() for item in defaults]}
            )
        except WriteFailure as e:
            self._defaults_pending = False
            logger.error("Could not save default schedule for %s: %s", self.key, e)
            return DashboardView(
                vehicle_present=True,
                vehicle=view.vehicle,
                recent_history=view.recent_history,
                error=f"Could not create the default schedule: {e}",
            )

        logger.info("Generated %d default tasks for %s", len(defaults), self.key)
        self._schedule_reminders(defaults)
        return view

    def _schedule_reminders(self, items: List[ScheduleItem]) -> None:
        if self.reminders is None:
            return
        for item in items:
            self.reminders.schedule_reminder(item.service, item.due)

    def _set_state(self, state: ReconcileState) -> None:
        if state is not self.state:
            logger.debug("%s: %s -> %s", self.key, self.state.value, state.value)
        self.state = state

    def _emit(self, view: DashboardView) -> None:
        self.view = view
        if self.on_view is not None:
            self.on_view(view)
