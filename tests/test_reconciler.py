#!/usr/bin/env python3
"""Tests for SnapshotReconciler and build_view."""

from datetime import timezone

from maintsync import (
    MemoryDocumentStore,
    ReminderScheduler,
    SnapshotReconciler,
)
from maintsync.reconciler import ReconcileState, build_view


class FailingWriteStore(MemoryDocumentStore):
    """Memory store whose writes always fail."""

    def __init__(self, documents=None):
        super().__init__(documents)
        self.write_attempts = 0

    def _write(self, key, doc):
        self.write_attempts += 1
        raise OSError("disk full")


class BrokenReadStore(MemoryDocumentStore):
    """Memory store that cannot be read."""

    def _read(self, key):
        raise OSError("permission denied")


class CountingStore(MemoryDocumentStore):
    """Memory store counting merge-writes."""

    def __init__(self, documents=None):
        super().__init__(documents)
        self.merge_writes = []

    def merge_write(self, key, partial):
        self.merge_writes.append(partial)
        super().merge_write(key, partial)


def views_of(reconciler):
    views = []
    reconciler.on_view = views.append
    return views


class TestBuildView:
    """Tests for build_view."""

    def test_sorted(self, vehicle_doc, clock):
        view = build_view(vehicle_doc, clock)
        assert [t.id for t in view.upcoming_tasks] == ["1", "2"]
        assert [h.id for h in view.recent_history] == ["101", "102"]
        assert view.vehicle.name == "Civic"
        assert view.vehicle_present

    def test_total_cost(self, vehicle_doc, clock):
        assert build_view(vehicle_doc, clock).total_cost == 8000

    def test_get_task(self, vehicle_doc, clock):
        view = build_view(vehicle_doc, clock)
        assert view.get_task("2").service == "Tire Replacement"
        assert view.get_task("missing") is None


class TestNoDocument:
    """A missing document asks for vehicle setup."""

    def test_setup_required(self, clock):
        reconciler = SnapshotReconciler(MemoryDocumentStore(), "user_1", clock=clock)
        views = views_of(reconciler)
        reconciler.start()
        assert reconciler.state is ReconcileState.NO_DOCUMENT
        assert len(views) == 1
        assert views[0].needs_setup
        assert not views[0].vehicle_present
        assert not reconciler.loading

    def test_no_writes(self, clock):
        store = CountingStore()
        SnapshotReconciler(store, "user_1", clock=clock).start()
        assert store.merge_writes == []
        assert store.get("user_1") is None


class TestEmptySchedule:
    """An empty upcoming set gets the default schedule once."""

    def test_defaults_written_once(self, clock):
        store = CountingStore({"user_1": {"vehicleName": "Civic", "plateNumber": "ABC 1234"}})
        reconciler = SnapshotReconciler(store, "user_1", clock=clock)
        views = views_of(reconciler)
        reconciler.start()

        assert len(store.merge_writes) == 1
        written = store.get("user_1")["upcomingSchedules"]
        assert [t["id"] for t in written] == ["default_oil", "default_reg", "default_tire"]

        # The write came back as a populated cycle
        assert reconciler.state is ReconcileState.POPULATED
        assert len(views[-1].upcoming_tasks) == 3
        assert not reconciler.loading

    def test_empty_list_and_missing_field_alike(self, clock):
        store = CountingStore({"user_1": {"vehicleName": "Civic", "upcomingSchedules": []}})
        SnapshotReconciler(store, "user_1", clock=clock).start()
        assert len(store.merge_writes) == 1

    def test_history_kept(self, vehicle_doc, clock):
        vehicle_doc["upcomingSchedules"] = []
        store = MemoryDocumentStore({"user_1": vehicle_doc})
        reconciler = SnapshotReconciler(store, "user_1", clock=clock).start()
        assert len(store.get("user_1")["maintenanceHistory"]) == 2
        assert [h.id for h in reconciler.view.recent_history] == ["101", "102"]

    def test_repeated_empty_snapshot_does_not_rewrite(self, clock):
        """While our write is outstanding, another empty snapshot is ignored."""
        store = CountingStore({"user_1": {"vehicleName": "Civic"}})
        reconciler = SnapshotReconciler(store, "user_1", clock=clock)
        reconciler._defaults_pending = True
        reconciler.handle_snapshot({"vehicleName": "Civic"})
        assert store.merge_writes == []
        assert reconciler.state is ReconcileState.EMPTY_SCHEDULE

    def test_deleted_document_clears_pending_defaults(self, clock):
        """A vehicle set up again after deletion still gets its defaults."""
        store = CountingStore({"user_1": {"vehicleName": "Civic"}})
        reconciler = SnapshotReconciler(store, "user_1", clock=clock)
        reconciler._defaults_pending = True
        reconciler.handle_snapshot(None)
        assert reconciler.state is ReconcileState.NO_DOCUMENT
        reconciler.handle_snapshot({"vehicleName": "Civic"})
        assert len(store.merge_writes) == 1

    def test_string_mileage(self, clock):
        store = MemoryDocumentStore(
            {"user_1": {"vehicleName": "Civic", "plateNumber": "ABC 1234", "currentMileage": "53200"}}
        )
        reconciler = SnapshotReconciler(store, "user_1", clock=clock).start()
        tasks = {t.id: t for t in reconciler.view.upcoming_tasks}
        assert tasks["default_oil"].due_km == 58200
        assert tasks["default_tire"].due_km == 63200

    def test_write_failure(self, clock):
        store = FailingWriteStore({"user_1": {"vehicleName": "Civic"}})
        reconciler = SnapshotReconciler(store, "user_1", clock=clock)
        views = views_of(reconciler)
        reconciler.start()

        assert store.write_attempts == 1
        assert views[-1].error.startswith("Could not create the default schedule")
        assert views[-1].upcoming_tasks == ()
        assert reconciler.state is ReconcileState.EMPTY_SCHEDULE
        assert not reconciler.loading

    def test_retry_after_write_failure(self, clock):
        """A failed write does not block the next attempt."""
        store = FailingWriteStore({"user_1": {"vehicleName": "Civic"}})
        reconciler = SnapshotReconciler(store, "user_1", clock=clock).start()
        reconciler.handle_snapshot({"vehicleName": "Civic"})
        assert store.write_attempts == 2

    def test_reminders_for_defaults(self, clock):
        reminders = ReminderScheduler(clock=clock, local_tz=timezone.utc)
        store = MemoryDocumentStore({"user_1": {"vehicleName": "Civic"}})
        SnapshotReconciler(store, "user_1", reminders=reminders, clock=clock).start()
        assert len(reminders.reminders) == 3


class TestPopulated:
    """A populated document is normalized and sorted."""

    def test_view(self, store, clock):
        reconciler = SnapshotReconciler(store, "user_1", clock=clock)
        views = views_of(reconciler)
        reconciler.start()
        assert reconciler.state is ReconcileState.POPULATED
        assert len(views) == 1
        assert [t.id for t in views[0].upcoming_tasks] == ["1", "2"]
        assert views[0].vehicle.current_mileage == 53200

    def test_updates_follow_writes(self, store, clock):
        reconciler = SnapshotReconciler(store, "user_1", clock=clock).start()
        store.update_field("user_1", "currentMileage", 54000)
        assert reconciler.view.vehicle.current_mileage == 54000

    def test_populated_never_writes(self, vehicle_doc, clock):
        store = CountingStore({"user_1": vehicle_doc})
        SnapshotReconciler(store, "user_1", clock=clock).start()
        assert store.merge_writes == []

    def test_document_deleted_later(self, store, clock):
        reconciler = SnapshotReconciler(store, "user_1", clock=clock).start()
        reconciler.handle_snapshot(None)
        assert reconciler.state is ReconcileState.NO_DOCUMENT
        assert reconciler.view.needs_setup


class TestLoadFailed:
    """Subscription errors end loading and report the failure."""

    def test_load_failed(self, clock):
        reconciler = SnapshotReconciler(BrokenReadStore(), "user_1", clock=clock)
        views = views_of(reconciler)
        reconciler.start()
        assert reconciler.state is ReconcileState.LOAD_FAILED
        assert views[0].load_failed
        assert "permission denied" in views[0].error
        assert not reconciler.loading


class TestLifecycle:
    """Tests for start/stop."""

    def test_stop_unsubscribes(self, store, clock):
        reconciler = SnapshotReconciler(store, "user_1", clock=clock)
        views = views_of(reconciler)
        reconciler.start()
        reconciler.stop()
        store.update_field("user_1", "currentMileage", 99999)
        assert len(views) == 1
        assert reconciler.view is None
        assert reconciler.state is ReconcileState.LOADING

    def test_start_twice_subscribes_once(self, store, clock):
        reconciler = SnapshotReconciler(store, "user_1", clock=clock)
        views = views_of(reconciler)
        reconciler.start()
        reconciler.start()
        store.update_field("user_1", "currentMileage", 54000)
        assert len(views) == 2

    def test_context_manager(self, store, clock):
        with SnapshotReconciler(store, "user_1", clock=clock) as reconciler:
            assert reconciler.view.vehicle.name == "Civic"
        assert reconciler.view is None
