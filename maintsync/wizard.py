"""
Vehicle setup wizard: five stages validated one at a time on advance.

Stage 1: photo
Stage 2: vehicle name, plate number
Stage 3: OR/CR expiry, engine type
Stage 4: current mileage, battery install date
Stage 5: last/next oil change, tire date
"""

import math
import re
from datetime import datetime
from typing import Any, Dict, Optional

from .dates import Clock, normalize, optional_date, utc_now
from .errors import InvalidDateError, ValidationError
from .schedule_item import parse_km
from .vehicle import ENGINE_TYPES, Vehicle

TOTAL_STAGES = 5

NAME_PATTERN = re.compile(r"^[a-zA-Z0-9\s\-_]+$")
PLATE_PATTERN = re.compile(r"^[A-Z0-9\s]+$")
PLATE_MIN_LENGTH = 6

FIELDS = (
    "vehicleImageUri",
    "vehicleName",
    "plateNumber",
    "orcrExpiry",
    "engineType",
    "currentMileage",
    "batteryDate",
    "lastOilChange",
    "nextOilChange",
    "tireDate",
)


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _is_number(value: Any) -> bool:
    try:
        return math.isfinite(float(str(value).strip()))
    except ValueError:
        return False


def _date_field(
    data: Dict[str, Any], key: str, missing: str, errors: Dict[str, str]
) -> Optional[datetime]:
    """Parse a required date field, recording an error if missing or invalid."""
    value = data.get(key)
    if _blank(value):
        errors[key] = missing
        return None
    try:
        return normalize(value)
    except InvalidDateError:
        errors[key] = "Please select a valid date."
        return None


def _validate_photo(data: Dict[str, Any], now: datetime) -> Dict[str, str]:
    if _blank(data.get("vehicleImageUri")):
        return {"vehicleImageUri": "You must upload a vehicle photo."}
    return {}


def _validate_identity(data: Dict[str, Any], now: datetime) -> Dict[str, str]:
    errors = {}
    name = data.get("vehicleName")
    if _blank(name):
        errors["vehicleName"] = "Vehicle name cannot be empty."
    elif not NAME_PATTERN.match(str(name)):
        errors["vehicleName"] = "Name contains invalid characters (no symbols)."

    plate = data.get("plateNumber")
    if _blank(plate):
        errors["plateNumber"] = "Plate number cannot be empty."
    elif len(str(plate)) < PLATE_MIN_LENGTH:
        errors["plateNumber"] = "Plate number is too short."
    elif not PLATE_PATTERN.match(str(plate)):
        errors["plateNumber"] = "Plate must be alphanumeric (A-Z, 0-9)."
    return errors


def _validate_registration(data: Dict[str, Any], now: datetime) -> Dict[str, str]:
    errors = {}
    if _blank(data.get("orcrExpiry")):
        errors["orcrExpiry"] = "Please select the OR/CR expiry date."
    if data.get("engineType") not in ENGINE_TYPES:
        errors["engineType"] = "Please select an engine type."
    return errors


def _validate_odometer(data: Dict[str, Any], now: datetime) -> Dict[str, str]:
    errors = {}
    mileage = data.get("currentMileage")
    if _blank(mileage):
        errors["currentMileage"] = "Mileage cannot be empty."
    elif not _is_number(mileage):
        errors["currentMileage"] = "Mileage must be a valid number."
    elif float(str(mileage).strip()) < 0:
        errors["currentMileage"] = "Mileage cannot be negative."
    if _blank(data.get("batteryDate")):
        errors["batteryDate"] = "Please select battery installation date."
    return errors


def _validate_service_dates(data: Dict[str, Any], now: datetime) -> Dict[str, str]:
    errors = {}
    last_oil = _date_field(
        data, "lastOilChange", "Please select last oil change date.", errors
    )
    next_oil = _date_field(
        data, "nextOilChange", "Please select next oil change date.", errors
    )
    _date_field(data, "tireDate", "Please select tire replacement date.", errors)

    if last_oil is not None and last_oil > now:
        errors["lastOilChange"] = "Date cannot be in the future."
    if last_oil is not None and next_oil is not None and next_oil < last_oil:
        errors["nextOilChange"] = "Next change must be after the last one."
    return errors


_STAGE_VALIDATORS = {
    1: _validate_photo,
    2: _validate_identity,
    3: _validate_registration,
    4: _validate_odometer,
    5: _validate_service_dates,
}


def validate_stage(
    stage: int, data: Dict[str, Any], now: Optional[datetime] = None
) -> Dict[str, str]:
    """Return field -> message for everything wrong in one stage."""
    if stage not in _STAGE_VALIDATORS:
        raise ValueError(f"Wizard stage must be 1..{TOTAL_STAGES}, got {stage}")
    return _STAGE_VALIDATORS[stage](data, now or utc_now())


def build_vehicle(data: Dict[str, Any], clock: Clock = utc_now) -> Vehicle:
    """Assemble a Vehicle from fully validated wizard data."""
    return Vehicle(
        # JSON input may carry numbers here
        name=str(data["vehicleName"]).strip(),
        plate=str(data["plateNumber"]).strip(),
        image_uri=data.get("vehicleImageUri"),
        engine_type=data.get("engineType"),
        current_mileage=parse_km(data.get("currentMileage")),
        orcr_expiry=optional_date(data.get("orcrExpiry"), clock),
        last_oil_change=optional_date(data.get("lastOilChange"), clock),
        next_oil_change=optional_date(data.get("nextOilChange"), clock),
        tire_date=optional_date(data.get("tireDate"), clock),
        battery_date=optional_date(data.get("batteryDate"), clock),
    )


class VehicleWizard:
    """Staged vehicle data plus the stage the user is on."""

    def __init__(self, data: Optional[Dict[str, Any]] = None, clock: Clock = utc_now):
        self.stage = 1
        self.data: Dict[str, Any] = {field: None for field in FIELDS}
        self.errors: Dict[str, str] = {}
        self.clock = clock
        for key, value in (data or {}).items():
            self.update(key, value)

    @classmethod
    def for_vehicle(cls, vehicle: Vehicle, clock: Clock = utc_now) -> "VehicleWizard":
        """Start a wizard pre-filled for editing an existing vehicle."""
        data = vehicle.to_document()
        data.pop("updatedAt", None)
        if data.get("currentMileage") is not None:
            data["currentMileage"] = str(data["currentMileage"])
        return cls(data, clock)

    @property
    def is_last_stage(self) -> bool:
        return self.stage == TOTAL_STAGES

    def update(self, key: str, value: Any) -> None:
        """Set a field; plate numbers are upper-cased, the field's error cleared."""
        if key == "plateNumber" and isinstance(value, str):
            value = value.upper()
        self.data[key] = value
        self.errors.pop(key, None)

    def advance(self) -> Optional[Vehicle]:
        """
        Validate the current stage and move on.

        Raises ValidationError and stays put if the stage is invalid.
        Returns the assembled Vehicle after the last stage, else None.
        """
        errors = validate_stage(self.stage, self.data, self.clock())
        self.errors = errors
        if errors:
            raise ValidationError(errors)
        if self.is_last_stage:
            return build_vehicle(self.data, self.clock)
        self.stage += 1
        return None

    def back(self) -> None:
        if self.stage > 1:
            self.stage -= 1

    def run(self) -> Vehicle:
        """Advance through every remaining stage; stops at the first invalid one."""
        while True:
            vehicle = self.advance()
            if vehicle is not None:
                return vehicle
