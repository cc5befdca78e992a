"""Flask JSON API for vehicle maintenance schedules."""

import logging
import threading
from typing import Any, Dict, Optional

from flask import Flask, current_app, jsonify, request

from maintsync import (
    DashboardView,
    DocumentStore,
    ReminderScheduler,
    ScheduleActions,
    SnapshotReconciler,
    UnknownTaskError,
    ValidationError,
    VehicleWizard,
    WriteFailure,
    YamlDocumentStore,
    load_config,
    progress_absolute,
    progress_windowed,
)
from maintsync.config import Config
from maintsync.vehicle import Vehicle

logger = logging.getLogger(__name__)


def get_store() -> DocumentStore:
    return current_app.extensions["maintsync.store"]


def get_reminders(vehicle_id: str) -> ReminderScheduler:
    """One scheduler per vehicle id, created on first use."""
    schedulers: Dict[str, ReminderScheduler] = current_app.extensions["maintsync.reminders"]
    with current_app.extensions["maintsync.reminders_lock"]:
        if vehicle_id not in schedulers:
            config: Config = current_app.config["MAINT_CONFIG"]
            schedulers[vehicle_id] = ReminderScheduler(
                hour=config.reminder_hour, days_before=config.reminder_days_before
            )
        return schedulers[vehicle_id]


def get_actions(vehicle_id: str) -> ScheduleActions:
    return ScheduleActions(get_store(), vehicle_id, reminders=get_reminders(vehicle_id))


def load_view(vehicle_id: str) -> DashboardView:
    """Run one reconciliation pass for a vehicle and return its view."""
    config: Config = current_app.config["MAINT_CONFIG"]
    reconciler = SnapshotReconciler(
        get_store(),
        vehicle_id,
        reminders=get_reminders(vehicle_id),
        interval_km=config.default_interval_km,
    )
    with reconciler:
        return reconciler.view


def task_json(task, current_km: Optional[int], windowed: bool) -> Dict[str, Any]:
    """Task dict plus a 'progress' percentage from the chosen policy."""
    progress = progress_windowed if windowed else progress_absolute
    data = task.to_dict()
    data["progress"] = progress(current_km, task.due_km) if task.due_km else None
    return data


def view_response(view: DashboardView, windowed: bool):
    if view.load_failed:
        return jsonify({"error": view.error, "loadFailed": True}), 503
    data = view.to_dict()
    if view.vehicle is not None:
        km = view.vehicle.current_mileage
        data["upcomingTasks"] = [task_json(t, km, windowed) for t in view.upcoming_tasks]
        data["totalCost"] = view.total_cost
    return jsonify(data)


def request_data() -> Dict[str, Any]:
    return request.get_json(silent=True) or request.form.to_dict()


def register_routes(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def handle_validation(error: ValidationError):
        return jsonify({"error": str(error), "errors": error.errors}), 400

    @app.errorhandler(UnknownTaskError)
    def handle_unknown(error: UnknownTaskError):
        return jsonify({"error": str(error)}), 404

    @app.errorhandler(WriteFailure)
    def handle_write_failure(error: WriteFailure):
        logger.error("Write failed: %s", error)
        return jsonify({"error": f"Could not save changes: {error}"}), 502

    @app.route("/")
    def index():
        """List vehicle ids known to the store."""
        return jsonify({"vehicles": get_store().keys()})

    @app.route("/vehicle/<vehicle_id>")
    def dashboard(vehicle_id: str):
        """Dashboard view; task progress uses the windowed policy."""
        return view_response(load_view(vehicle_id), windowed=True)

    @app.route("/vehicle/<vehicle_id>/tasks", methods=["GET"])
    def list_tasks(vehicle_id: str):
        """All upcoming tasks; progress uses the absolute policy."""
        view = load_view(vehicle_id)
        if view.load_failed or view.needs_setup:
            return view_response(view, windowed=False)
        km = view.vehicle.current_mileage
        return jsonify(
            {"upcomingTasks": [task_json(t, km, False) for t in view.upcoming_tasks]}
        )

    @app.route("/vehicle/<vehicle_id>/setup", methods=["POST"])
    def setup_vehicle(vehicle_id: str):
        """Run all wizard stages over the posted fields and save the vehicle."""
        store = get_store()
        existing = store.get(vehicle_id)
        if existing is not None:
            wizard = VehicleWizard.for_vehicle(Vehicle.from_document(existing))
        else:
            wizard = VehicleWizard()
        for key, value in request_data().items():
            wizard.update(key, value)

        try:
            vehicle = wizard.run()
        except ValidationError as e:
            return jsonify({"stage": wizard.stage, "errors": e.errors}), 400

        get_actions(vehicle_id).save_vehicle(vehicle)
        return jsonify({"vehicle": vehicle.to_document()}), 201 if existing is None else 200

    @app.route("/vehicle/<vehicle_id>/tasks", methods=["POST"])
    def add_task(vehicle_id: str):
        data = request_data()
        item = get_actions(vehicle_id).add_task(
            data.get("service") or "",
            data.get("dueKm"),
            due=data.get("dateObject") or data.get("dueDate"),
            subtitle=data.get("subtitle"),
            icon=data.get("icon") or "wrench",
            color=data.get("color") or "#4E73DF",
        )
        return jsonify(item.to_dict()), 201

    @app.route("/vehicle/<vehicle_id>/tasks/<task_id>", methods=["PUT"])
    def update_task(vehicle_id: str, task_id: str):
        data = request_data()
        item = get_actions(vehicle_id).update_task(
            task_id,
            service=data.get("service"),
            due=data.get("dateObject") or data.get("dueDate"),
            due_km=data.get("dueKm"),
            subtitle=data.get("subtitle"),
        )
        return jsonify(item.to_dict())

    @app.route("/vehicle/<vehicle_id>/tasks/<task_id>", methods=["DELETE"])
    def delete_task(vehicle_id: str, task_id: str):
        get_actions(vehicle_id).delete_task(task_id)
        return "", 204

    @app.route("/vehicle/<vehicle_id>/tasks/<task_id>/complete", methods=["POST"])
    def complete_task(vehicle_id: str, task_id: str):
        data = request_data()
        record = get_actions(vehicle_id).complete_task(
            task_id,
            shop=data.get("shop") or "",
            cost=data.get("cost"),
            completed_at=data.get("dateObject") or data.get("date"),
            mileage=data.get("mileage"),
            service=data.get("service"),
        )
        return jsonify(record.to_dict()), 201

    @app.route("/vehicle/<vehicle_id>/history", methods=["POST"])
    def log_service(vehicle_id: str):
        data = request_data()
        record = get_actions(vehicle_id).log_service(
            data.get("service") or "",
            shop=data.get("shop") or "",
            cost=data.get("cost"),
            completed_at=data.get("dateObject") or data.get("date"),
            mileage=data.get("mileage"),
        )
        return jsonify(record.to_dict()), 201

    @app.route("/vehicle/<vehicle_id>/history/<history_id>", methods=["DELETE"])
    def delete_history(vehicle_id: str, history_id: str):
        get_actions(vehicle_id).delete_history(history_id)
        return "", 204

    @app.route("/vehicle/<vehicle_id>/mileage", methods=["POST"])
    def update_mileage(vehicle_id: str):
        """Update the odometer reading."""
        mileage = request_data().get("mileage")
        if mileage is None or mileage == "":
            raise ValidationError({"currentMileage": "Please enter mileage"})
        km = get_actions(vehicle_id).update_mileage(mileage)
        return jsonify({"currentMileage": km})


def create_app(
    store: Optional[DocumentStore] = None, config: Optional[Config] = None
) -> Flask:
    """Build the app. Defaults to a YAML store in the configured data directory."""
    config = config or load_config()
    app = Flask(__name__)
    app.secret_key = config.secret_key
    app.config["MAINT_CONFIG"] = config
    app.extensions["maintsync.store"] = store or YamlDocumentStore(config.data_dir)
    app.extensions["maintsync.reminders"] = {}
    app.extensions["maintsync.reminders_lock"] = threading.Lock()
    register_routes(app)
    return app


if __name__ == "__main__":
    config = load_config()
    logging.basicConfig(level=config.log_level.upper())
    # Access from phone: use your computer's local IP (e.g., 192.168.1.x:5001)
    # Using 5001 to avoid conflict with macOS AirPlay Receiver on 5000
    create_app(config=config).run(debug=True, host="0.0.0.0", port=5001)
