"""Baseline schedule for a vehicle that has no upcoming tasks yet."""

from datetime import datetime
from typing import List, Optional

from .calculations import SERVICE_INTERVAL_KM, calc_due_date, calc_due_km
from .dates import utc_now
from .schedule_item import ScheduleItem
from .vehicle import Vehicle

DEFAULT_OIL_ID = "default_oil"
DEFAULT_REG_ID = "default_reg"
DEFAULT_TIRE_ID = "default_tire"


def generate_default_schedule(
    vehicle: Vehicle,
    now: Optional[datetime] = None,
    interval_km: int = SERVICE_INTERVAL_KM,
) -> List[ScheduleItem]:
    """
    Build the three default tasks: oil change, registration, tire rotation.

    Known dates on the vehicle win; otherwise oil and tires are due in six
    months and registration in a year. Ids are fixed, so generating twice
    from the same vehicle gives the same content. Callers must only invoke
    this for an empty upcoming set.
    """
    now = now or utc_now()

    oil_km = calc_due_km(vehicle.current_mileage, interval_km)
    oil_due = calc_due_date(vehicle.next_oil_change, now, months=6)
    reg_due = calc_due_date(vehicle.orcr_expiry, now, years=1)
    tire_due = calc_due_date(vehicle.tire_date, now, months=6)

    return [
        ScheduleItem(
            id=DEFAULT_OIL_ID,
            service="Oil Change",
            subtitle="Routine Maintenance",
            due=oil_due,
            due_km=oil_km,
            icon="oil",
            color="#FF5252",
        ),
        ScheduleItem(
            id=DEFAULT_REG_ID,
            service="Registration Renewal",
            subtitle="LTO Requirement",
            due=reg_due,
            icon="file-document-outline",
            color="#FF9800",
        ),
        ScheduleItem(
            id=DEFAULT_TIRE_ID,
            service="Tire Rotation",
            subtitle="Safety Check",
            due=tire_due,
            due_km=oil_km + interval_km,
            icon="tire",
            color="#2196F3",
        ),
    ]
