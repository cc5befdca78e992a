#!/usr/bin/env python3
"""
Unified CLI for vehicle maintenance scheduling.

Commands:
  status         - Dashboard: upcoming tasks and recent activity
  tasks          - List all upcoming tasks with mileage progress
  history        - View completed service history
  add            - Add an upcoming task
  edit           - Change an upcoming task
  complete       - Mark an upcoming task as done
  delete         - Remove an upcoming task
  log            - Record a service that was not on the schedule
  delete-history - Remove a history record
  update-miles   - Update current odometer reading
  setup          - Create or edit the vehicle (runs the setup wizard checks)
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from tabulate import tabulate
from typing import List, Optional, Tuple

from maintsync import (
    DashboardView,
    HistoryItem,
    MaintSyncError,
    ReminderScheduler,
    ScheduleActions,
    ScheduleItem,
    SnapshotReconciler,
    ValidationError,
    VehicleWizard,
    YamlDocumentStore,
    load_config,
    normalize,
    progress_absolute,
    progress_windowed,
)
from maintsync.config import Config
from maintsync.dates import format_display
from maintsync.store import YAML_EXTENSIONS
from maintsync.vehicle import ENGINE_TYPES, Vehicle

logger = logging.getLogger("maint")

# Number of items shown per section on the dashboard
DASHBOARD_TASKS = 3
DASHBOARD_HISTORY = 2

# =============================================================================
# Formatting helpers
# =============================================================================


def format_km(km: Optional[float]) -> str:
    """Format mileage for display."""
    return f"{km:,.0f}" if km is not None else "-"


def format_cost(cost: Optional[float]) -> str:
    """Format cost for display."""
    return f"₱{cost:,.2f}" if cost is not None else "-"


def format_progress(percent: float) -> str:
    """Format a 0-100 progress value (e.g., '64%')."""
    return f"{percent:.0f}%"


def format_date(value: Optional[datetime]) -> str:
    return format_display(value) if value is not None else "-"


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if not text:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def print_errors(errors: dict) -> None:
    for field, message in errors.items():
        print(f"  {field}: {message}")


# =============================================================================
# Store access
# =============================================================================


def open_vehicle(
    vehicle_file: Path, config: Config
) -> Tuple[YamlDocumentStore, str, ReminderScheduler]:
    """The vehicle file's directory is the store; its stem is the key."""
    store = YamlDocumentStore(vehicle_file.parent, extension=vehicle_file.suffix)
    reminders = ReminderScheduler(
        hour=config.reminder_hour, days_before=config.reminder_days_before
    )
    return store, vehicle_file.stem, reminders


def load_view(
    store: YamlDocumentStore, key: str, reminders: ReminderScheduler, config: Config
) -> DashboardView:
    """Run the reconciler until the store settles and return the last view."""
    reconciler = SnapshotReconciler(
        store, key, reminders=reminders, interval_km=config.default_interval_km
    )
    with reconciler:
        return reconciler.view


def make_actions(args, config: Config) -> ScheduleActions:
    store, key, reminders = open_vehicle(args.vehicle_file, config)
    return ScheduleActions(store, key, reminders=reminders)


# =============================================================================
# Status command
# =============================================================================


def make_task_table(
    tasks: List[ScheduleItem], current_km: Optional[int], windowed: bool
) -> List[List[str]]:
    """Convert upcoming tasks to table rows."""
    progress = progress_windowed if windowed else progress_absolute
    rows = []
    for task in tasks:
        rows.append(
            [
                task.id,
                task.service,
                task.display_date,
                format_km(task.due_km),
                format_progress(progress(current_km, task.due_km)) if task.due_km else "-",
            ]
        )
    return rows


def make_history_table(entries: List[HistoryItem]) -> List[List[str]]:
    """Convert history entries to table rows."""
    rows = []
    for entry in entries:
        rows.append(
            [
                entry.display_date,
                entry.service,
                truncate(entry.shop) if entry.shop else "Service Record",
                format_km(entry.mileage),
                format_cost(entry.cost),
                entry.id,
            ]
        )
    return rows


TASK_HEADERS = ["Id", "Service", "Due (date)", "Due (km)", "Progress"]
HISTORY_HEADERS = ["Date", "Service", "Shop", "Mileage", "Cost", "Id"]


def print_vehicle_header(vehicle: Vehicle) -> None:
    print(f"Vehicle: {vehicle.display_name}")
    print(f"Odometer: {format_km(vehicle.current_mileage)} km")
    if vehicle.engine_type:
        print(f"Engine: {vehicle.engine_type}")


def check_view(view: DashboardView, args) -> Optional[int]:
    """Print a message and return an exit code if there is nothing to show."""
    if view.load_failed:
        print(f"Error: Could not load vehicle data: {view.error}")
        return 1
    if view.needs_setup:
        print(f"No vehicle set up in {args.vehicle_file}. Run the 'setup' command first.")
        return 1
    if view.error:
        print(f"Warning: {view.error}")
    return None


def cmd_status(args, config: Config):
    """Dashboard: upcoming tasks and recent activity."""
    store, key, reminders = open_vehicle(args.vehicle_file, config)
    view = load_view(store, key, reminders, config)
    code = check_view(view, args)
    if code is not None:
        return code

    vehicle = view.vehicle
    print_vehicle_header(vehicle)
    print(f"Upcoming tasks: {len(view.upcoming_tasks)}")
    print(f"History entries: {len(view.recent_history)}")
    print()

    print("UPCOMING SERVICES:")
    if view.upcoming_tasks:
        rows = make_task_table(
            list(view.upcoming_tasks[:DASHBOARD_TASKS]),
            vehicle.current_mileage,
            windowed=True,
        )
        print(tabulate(rows, headers=TASK_HEADERS, tablefmt="simple"))
    else:
        print("  No upcoming services.")
    print()

    print("RECENT ACTIVITY:")
    if view.recent_history:
        rows = make_history_table(list(view.recent_history[:DASHBOARD_HISTORY]))
        print(tabulate(rows, headers=HISTORY_HEADERS, tablefmt="simple"))
    else:
        print("  No recent activity. Complete a task to add it here.")
    print()

    return 0


# =============================================================================
# Tasks command
# =============================================================================


def cmd_tasks(args, config: Config):
    """List all upcoming tasks with absolute mileage progress."""
    store, key, reminders = open_vehicle(args.vehicle_file, config)
    view = load_view(store, key, reminders, config)
    code = check_view(view, args)
    if code is not None:
        return code

    print_vehicle_header(view.vehicle)
    print()
    if not view.upcoming_tasks:
        print("No upcoming tasks.")
        return 0

    rows = make_task_table(
        list(view.upcoming_tasks), view.vehicle.current_mileage, windowed=False
    )
    print(tabulate(rows, headers=TASK_HEADERS, tablefmt="simple"))
    return 0


# =============================================================================
# History command
# =============================================================================


def cmd_history(args, config: Config):
    """View service history."""
    store, key, reminders = open_vehicle(args.vehicle_file, config)
    view = load_view(store, key, reminders, config)
    code = check_view(view, args)
    if code is not None:
        return code

    entries = list(view.recent_history)
    if args.asc:
        entries.reverse()

    # Apply filters
    if args.service:
        entries = [e for e in entries if args.service.lower() in e.service.lower()]

    if args.since:
        since = normalize(args.since)
        entries = [e for e in entries if e.completed_at >= since]

    total_cost = sum(e.cost for e in entries)

    print_vehicle_header(view.vehicle)
    print(f"Total services: {len(view.recent_history)}")
    if args.service or args.since:
        print(f"Showing: {len(entries)} (filtered)")
    if total_cost > 0:
        print(f"Total cost: {format_cost(total_cost)}")
    print()

    if not entries:
        print("No history entries found.")
        return 0

    print(tabulate(make_history_table(entries), headers=HISTORY_HEADERS, tablefmt="simple"))
    return 0


# =============================================================================
# Task commands: add, edit, complete, delete
# =============================================================================


def cmd_add(args, config: Config):
    """Add an upcoming task."""
    print(f"Adding task to {args.vehicle_file}:")
    print(f"  Service: {args.service}")
    print(f"  Due km:  {args.due_km}")
    print(f"  Due:     {args.due or 'today'}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    item = make_actions(args, config).add_task(
        args.service,
        args.due_km,
        due=args.due,
        subtitle=args.subtitle,
        icon=args.icon,
        color=args.color,
    )
    print(f"Task saved (id {item.id}).")
    return 0


def cmd_edit(args, config: Config):
    """Change an upcoming task."""
    item = make_actions(args, config).update_task(
        args.task_id,
        service=args.service,
        due=args.due,
        due_km=args.due_km,
        subtitle=args.subtitle,
    )
    print(f"Updated {item.service}: due {item.display_date} / {format_km(item.due_km)} km")
    return 0


def cmd_complete(args, config: Config):
    """Mark an upcoming task as done."""
    store, key, reminders = open_vehicle(args.vehicle_file, config)
    view = load_view(store, key, reminders, config)
    code = check_view(view, args)
    if code is not None:
        return code

    task = view.get_task(args.task_id)
    if task is None:
        print(f"Error: Unknown task id '{args.task_id}'")
        print("\nUpcoming tasks:")
        for t in view.upcoming_tasks:
            print(f"  {t.id}: {t.service}")
        return 1

    print(f"Completing {task.service}:")
    print(f"  Date:    {args.date or 'today'}")
    if args.shop:
        print(f"  Shop:    {args.shop}")
    if args.cost is not None:
        print(f"  Cost:    {format_cost(args.cost)}")
    if args.mileage is not None:
        print(f"  Mileage: {format_km(args.mileage)}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    actions = ScheduleActions(store, key, reminders=reminders)
    record = actions.complete_task(
        task,
        shop=args.shop or "",
        cost=args.cost,
        completed_at=args.date,
        mileage=args.mileage,
    )
    print(f"Moved to history (id {record.id}).")
    return 0


def cmd_delete(args, config: Config):
    """Remove an upcoming task."""
    make_actions(args, config).delete_task(args.task_id)
    print(f"Deleted task {args.task_id}.")
    return 0


# =============================================================================
# History commands: log, delete-history
# =============================================================================


def cmd_log(args, config: Config):
    """Record a service that was not on the schedule."""
    print(f"Adding service record to {args.vehicle_file}:")
    print(f"  Service: {args.service}")
    print(f"  Date:    {args.date or 'today'}")
    if args.shop:
        print(f"  Shop:    {args.shop}")
    if args.cost is not None:
        print(f"  Cost:    {format_cost(args.cost)}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    record = make_actions(args, config).log_service(
        args.service,
        shop=args.shop or "",
        cost=args.cost,
        completed_at=args.date,
        mileage=args.mileage,
    )
    print(f"Entry saved (id {record.id}).")
    return 0


def cmd_delete_history(args, config: Config):
    make_actions(args, config).delete_history(args.history_id)
    print(f"Deleted history record {args.history_id}.")
    return 0


# =============================================================================
# Update Miles command
# =============================================================================


def cmd_update_miles(args, config: Config):
    """Update current odometer reading."""
    store, key, reminders = open_vehicle(args.vehicle_file, config)
    doc = store.get(key)
    if doc is None:
        print(f"No vehicle set up in {args.vehicle_file}. Run the 'setup' command first.")
        return 1
    vehicle = Vehicle.from_document(doc)

    print(f"Vehicle: {vehicle.display_name}")
    print(f"Current mileage: {format_km(vehicle.current_mileage)}")
    print(f"New mileage:     {format_km(args.mileage)}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    ScheduleActions(store, key).update_mileage(args.mileage)
    print("Mileage updated.")
    return 0


# =============================================================================
# Setup command
# =============================================================================

# CLI flag -> wizard field
SETUP_FIELDS = {
    "photo": "vehicleImageUri",
    "name": "vehicleName",
    "plate": "plateNumber",
    "orcr_expiry": "orcrExpiry",
    "engine": "engineType",
    "mileage": "currentMileage",
    "battery_date": "batteryDate",
    "last_oil": "lastOilChange",
    "next_oil": "nextOilChange",
    "tire_date": "tireDate",
}


def cmd_setup(args, config: Config):
    """Create or edit the vehicle, validating each wizard stage in order."""
    store, key, reminders = open_vehicle(args.vehicle_file, config)
    doc = store.get(key)
    if doc is not None:
        wizard = VehicleWizard.for_vehicle(Vehicle.from_document(doc))
    else:
        wizard = VehicleWizard()

    for flag, field in SETUP_FIELDS.items():
        value = getattr(args, flag)
        if value is not None:
            wizard.update(field, value)

    try:
        vehicle = wizard.run()
    except ValidationError as e:
        print(f"Error: Step {wizard.stage} of 5 is incomplete:")
        print_errors(e.errors)
        return 1

    print(f"Vehicle: {vehicle.display_name}")
    print(f"Engine:  {vehicle.engine_type}")
    print(f"Odometer: {format_km(vehicle.current_mileage)} km")
    print(f"OR/CR expiry:    {format_date(vehicle.orcr_expiry)}")
    print(f"Next oil change: {format_date(vehicle.next_oil_change)}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    ScheduleActions(store, key, reminders=reminders).save_vehicle(vehicle)
    print("Vehicle saved.")
    return 0


# =============================================================================
# Main
# =============================================================================


COMMANDS = {
    "status": cmd_status,
    "tasks": cmd_tasks,
    "history": cmd_history,
    "add": cmd_add,
    "edit": cmd_edit,
    "complete": cmd_complete,
    "delete": cmd_delete,
    "log": cmd_log,
    "delete-history": cmd_delete_history,
    "update-miles": cmd_update_miles,
    "setup": cmd_setup,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Vehicle maintenance scheduler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s vehicles/user_1.yaml setup --photo car.jpg --name "Civic" \\
      --plate "ABC 1234" --orcr-expiry 2026-05-01 --engine Gasoline \\
      --mileage 53200 --battery-date 2024-01-10 --last-oil 2025-06-01 \\
      --next-oil 2025-12-01 --tire-date 2025-09-01
  %(prog)s vehicles/user_1.yaml status
  %(prog)s vehicles/user_1.yaml tasks
  %(prog)s vehicles/user_1.yaml add "Spark Plug Replacement" --due-km 60000 --due 2026-03-01
  %(prog)s vehicles/user_1.yaml complete default_oil --shop "Shell Station" --cost 2200
  %(prog)s vehicles/user_1.yaml history --since 2025-01-01
  %(prog)s vehicles/user_1.yaml update-miles 58000
""",
    )
    parser.add_argument(
        "vehicle_file",
        type=Path,
        help="Path to vehicle YAML document",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to a YAML settings file",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("status", help="Dashboard: upcoming tasks and recent activity")
    subparsers.add_parser("tasks", help="List all upcoming tasks with mileage progress")

    # History subcommand
    history_parser = subparsers.add_parser("history", help="View service history")
    history_parser.add_argument(
        "--service",
        type=str,
        help="Filter to services containing text (case-insensitive, e.g., 'oil')",
    )
    history_parser.add_argument(
        "--since",
        type=str,
        help="Show only entries since date (YYYY-MM-DD)",
    )
    history_parser.add_argument(
        "--asc",
        action="store_true",
        help="Oldest first instead of newest first",
    )

    # Add subcommand
    add_parser = subparsers.add_parser("add", help="Add an upcoming task")
    add_parser.add_argument("service", type=str, help="Service name")
    add_parser.add_argument("--due-km", type=str, required=True, help="Due at mileage (km)")
    add_parser.add_argument("--due", type=str, help="Target due date (default: today)")
    add_parser.add_argument("--subtitle", type=str, help="Short description")
    add_parser.add_argument("--icon", type=str, default="wrench", help="Icon name")
    add_parser.add_argument("--color", type=str, default="#4E73DF", help="Display color")
    add_parser.add_argument(
        "--dry-run", action="store_true", help="Show what would be added without saving"
    )

    # Edit subcommand
    edit_parser = subparsers.add_parser("edit", help="Change an upcoming task")
    edit_parser.add_argument("task_id", type=str, help="Task id")
    edit_parser.add_argument("--service", type=str, help="New service name")
    edit_parser.add_argument("--due", type=str, help="New due date")
    edit_parser.add_argument("--due-km", type=str, help="New due mileage")
    edit_parser.add_argument("--subtitle", type=str, help="New description")

    # Complete subcommand
    complete_parser = subparsers.add_parser("complete", help="Mark an upcoming task as done")
    complete_parser.add_argument("task_id", type=str, help="Task id (see 'tasks')")
    complete_parser.add_argument("--shop", type=str, help="Where the service was done")
    complete_parser.add_argument("--cost", type=float, help="Cost of service")
    complete_parser.add_argument("--date", type=str, help="Service date (default: today)")
    complete_parser.add_argument("--mileage", type=int, help="Odometer at time of service")
    complete_parser.add_argument(
        "--dry-run", action="store_true", help="Show what would change without saving"
    )

    # Delete subcommand
    delete_parser = subparsers.add_parser("delete", help="Remove an upcoming task")
    delete_parser.add_argument("task_id", type=str, help="Task id")

    # Log subcommand
    log_parser = subparsers.add_parser("log", help="Record an unscheduled service")
    log_parser.add_argument("service", type=str, help="Service name")
    log_parser.add_argument("--shop", type=str, help="Where the service was done")
    log_parser.add_argument("--cost", type=float, help="Cost of service")
    log_parser.add_argument("--date", type=str, help="Service date (default: today)")
    log_parser.add_argument("--mileage", type=int, help="Odometer at time of service")
    log_parser.add_argument(
        "--dry-run", action="store_true", help="Show what would be added without saving"
    )

    # Delete history subcommand
    delete_history_parser = subparsers.add_parser(
        "delete-history", help="Remove a history record"
    )
    delete_history_parser.add_argument("history_id", type=str, help="History record id")

    # Update Miles subcommand
    update_miles_parser = subparsers.add_parser(
        "update-miles", help="Update current odometer reading"
    )
    update_miles_parser.add_argument("mileage", type=int, help="Current mileage (km)")
    update_miles_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be updated without saving",
    )

    # Setup subcommand
    setup_parser = subparsers.add_parser("setup", help="Create or edit the vehicle")
    setup_parser.add_argument("--photo", type=str, help="Vehicle photo path or URI")
    setup_parser.add_argument("--name", type=str, help="Vehicle name")
    setup_parser.add_argument("--plate", type=str, help="Plate number")
    setup_parser.add_argument("--orcr-expiry", type=str, help="OR/CR expiry date")
    setup_parser.add_argument("--engine", choices=ENGINE_TYPES, help="Engine type")
    setup_parser.add_argument("--mileage", type=str, help="Current mileage (km)")
    setup_parser.add_argument("--battery-date", type=str, help="Battery install date")
    setup_parser.add_argument("--last-oil", type=str, help="Last oil change date")
    setup_parser.add_argument("--next-oil", type=str, help="Next oil change date")
    setup_parser.add_argument("--tire-date", type=str, help="Tire replacement date")
    setup_parser.add_argument(
        "--dry-run", action="store_true", help="Validate without saving"
    )

    return parser


def main(argv: Optional[List[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.log_level.upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.vehicle_file.suffix not in YAML_EXTENSIONS:
        print(f"Error: Vehicle file must end in .yaml or .yml: {args.vehicle_file}")
        return 1

    # Validate vehicle file exists
    if args.command != "setup" and not args.vehicle_file.exists():
        print(f"Error: File not found: {args.vehicle_file}")
        return 1

    try:
        return COMMANDS[args.command](args, config)
    except ValidationError as e:
        print("Error: Invalid input:")
        print_errors(e.errors)
        return 1
    except MaintSyncError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
