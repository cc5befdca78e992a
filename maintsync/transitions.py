"""Moving an upcoming task into the history set."""

import time
import uuid
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from .dates import utc_now
from .history_item import HistoryItem, parse_cost
from .schedule_item import ScheduleItem

HISTORY_ID_PREFIX = "hist_"


def make_history_id() -> str:
    """Time-based id with a short random suffix, e.g. 'hist_1718000000000_3fa9c'."""
    return f"{HISTORY_ID_PREFIX}{int(time.time() * 1000)}_{uuid.uuid4().hex[:5]}"


def complete_task(
    upcoming: Sequence[ScheduleItem],
    history: Sequence[HistoryItem],
    target: ScheduleItem,
    shop: str = "",
    cost: Optional[float] = None,
    completed_at: Optional[datetime] = None,
    mileage: Optional[int] = None,
    service: Optional[str] = None,
) -> Tuple[List[ScheduleItem], List[HistoryItem], HistoryItem]:
    """
    Build the history record for ``target`` and the two updated collections.

    Returns (new_upcoming, new_history, history_item). Only the item whose
    id equals target.id is removed; the inputs are not modified.
    """
    completed_at = completed_at or utc_now()
    record = HistoryItem(
        id=make_history_id(),
        service=service or target.service,
        completed_at=completed_at,
        shop=shop or "",
        cost=parse_cost(cost),
        mileage=mileage,
        icon=target.icon,
        color=target.color,
    )
    new_upcoming = [t for t in upcoming if t.id != target.id]
    new_history = list(history) + [record]
    return new_upcoming, new_history, record
