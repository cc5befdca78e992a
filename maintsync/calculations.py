"""Helper functions for due-point and progress calculations."""

from datetime import datetime
from typing import Optional

from dateutil.relativedelta import relativedelta

# Mileage between routine services (oil change, tire rotation)
SERVICE_INTERVAL_KM = 5000


def calc_due_km(current_km: Optional[int], interval: int = SERVICE_INTERVAL_KM) -> int:
    """
    Calculate next due mileage.

    - With a known odometer: current_km + interval
    - Without: interval (assume a fresh vehicle)
    """
    if current_km is not None:
        return current_km + interval
    return interval


def calc_due_date(
    known: Optional[datetime], now: datetime, months: int = 0, years: int = 0
) -> datetime:
    """Use the known due date if there is one, otherwise now + the interval."""
    if known is not None:
        return known
    return now + relativedelta(months=months, years=years)


# =============================================================================
# Progress toward a mileage target
#
# Two policies are in use and they give different answers for the same
# numbers, so both are kept:
#   absolute - maintenance task list (maint.py tasks, GET .../tasks)
#   windowed - dashboard (maint.py status, GET /vehicle/<id>)
# =============================================================================


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def progress_absolute(current: Optional[float], target: Optional[float]) -> float:
    """Percentage of the target mileage reached, capped at 100."""
    if not target or current is None:
        return 0.0
    return _clamp(100.0 * current / target)


def progress_windowed(
    current: Optional[float],
    target: Optional[float],
    window: float = SERVICE_INTERVAL_KM,
) -> float:
    """
    Percentage through the service window that ends at the target.

    The window is assumed to start ``window`` km before the target, e.g.
    current=53200, target=55000 -> start 50000 -> 64%.
    """
    if not target or current is None or not window:
        return 0.0
    start = target - window
    return _clamp(100.0 * (current - start) / window)
