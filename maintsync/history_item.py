"""HistoryItem class for completed service records."""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from .dates import Clock, format_display, normalize_or_now, utc_now
from .schedule_item import parse_km
from .status import TaskStatus


def parse_cost(value: Any) -> float:
    """Cost as a non-negative float; anything unusable counts as 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        cost = float(str(value).strip().replace(",", ""))
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(cost) or math.isinf(cost) or cost < 0:
        return 0.0
    return cost


@dataclass(frozen=True)
class HistoryItem:
    """A record of maintenance performed."""

    id: str
    service: str
    completed_at: datetime
    shop: str = ""
    cost: float = 0.0
    mileage: Optional[int] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    status: TaskStatus = TaskStatus.COMPLETED
    date_label: Optional[str] = None

    @property
    def display_date(self) -> str:
        return self.date_label or format_display(self.completed_at)

    @classmethod
    def from_dict(cls, dct: Dict[str, Any], clock: Clock = utc_now) -> "HistoryItem":
        completed_at = normalize_or_now(dct.get("dateObject") or dct.get("date"), clock)
        return cls(
            id=str(dct.get("id", "")),
            service=dct.get("service") or "",
            completed_at=completed_at,
            shop=dct.get("shop") or "",
            cost=parse_cost(dct.get("cost")),
            mileage=parse_km(dct.get("mileage")),
            icon=dct.get("icon"),
            color=dct.get("color"),
            date_label=dct.get("date"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "service": self.service,
            "shop": self.shop,
            "cost": self.cost,
            "date": self.display_date,
            "dateObject": self.completed_at.isoformat(),
        }
        if self.mileage is not None:
            d["mileage"] = self.mileage
        if self.icon is not None:
            d["icon"] = self.icon
        if self.color is not None:
            d["color"] = self.color
        d["status"] = self.status.value
        return d
