"""Vehicle class - the vehicle attributes stored in a user's document."""

from datetime import datetime
from typing import Any, Dict, Optional

from .dates import Clock, optional_date, utc_now
from .schedule_item import parse_km

# Document keys for the two schedule collections
UPCOMING_FIELD = "upcomingSchedules"
HISTORY_FIELD = "maintenanceHistory"

ENGINE_TYPES = ("Gasoline", "Diesel", "Hybrid", "Electric")


class Vehicle:
    """Vehicle identification, odometer, and key service dates."""

    def __init__(
        self,
        name: str,
        plate: str,
        image_uri: Optional[str] = None,
        engine_type: Optional[str] = None,
        current_mileage: Optional[int] = None,
        orcr_expiry: Optional[datetime] = None,
        last_oil_change: Optional[datetime] = None,
        next_oil_change: Optional[datetime] = None,
        tire_date: Optional[datetime] = None,
        battery_date: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        self.name = name
        self.plate = plate
        self.image_uri = image_uri
        self.engine_type = engine_type
        self.current_mileage = current_mileage
        self.orcr_expiry = orcr_expiry
        self.last_oil_change = last_oil_change
        self.next_oil_change = next_oil_change
        self.tire_date = tire_date
        self.battery_date = battery_date
        self.updated_at = updated_at

    @property
    def display_name(self) -> str:
        """Human-readable vehicle name with plate."""
        if self.plate:
            return f"{self.name} ({self.plate})"
        return self.name

    @classmethod
    def from_document(cls, doc: Dict[str, Any], clock: Clock = utc_now) -> "Vehicle":
        """Build from a stored vehicle document (camelCase keys)."""
        return cls(
            name=doc.get("vehicleName") or "",
            plate=doc.get("plateNumber") or "",
            image_uri=doc.get("vehicleImageUri"),
            engine_type=doc.get("engineType"),
            current_mileage=parse_km(doc.get("currentMileage")),
            orcr_expiry=optional_date(doc.get("orcrExpiry"), clock),
            last_oil_change=optional_date(doc.get("lastOilChange"), clock),
            next_oil_change=optional_date(doc.get("nextOilChange"), clock),
            tire_date=optional_date(doc.get("tireDate"), clock),
            battery_date=optional_date(doc.get("batteryDate"), clock),
            updated_at=optional_date(doc.get("updatedAt"), clock),
        )

    def to_document(self) -> Dict[str, Any]:
        """Serialize the vehicle attributes, omitting None values."""
        d: Dict[str, Any] = {"vehicleName": self.name, "plateNumber": self.plate}
        if self.image_uri is not None:
            d["vehicleImageUri"] = self.image_uri
        if self.engine_type is not None:
            d["engineType"] = self.engine_type
        if self.current_mileage is not None:
            d["currentMileage"] = self.current_mileage
        dates = {
            "orcrExpiry": self.orcr_expiry,
            "lastOilChange": self.last_oil_change,
            "nextOilChange": self.next_oil_change,
            "tireDate": self.tire_date,
            "batteryDate": self.battery_date,
            "updatedAt": self.updated_at,
        }
        for key, value in dates.items():
            if value is not None:
                d[key] = value.isoformat()
        return d
