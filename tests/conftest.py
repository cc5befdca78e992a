"""Shared fixtures: a populated vehicle document and a fixed clock."""

from datetime import datetime, timezone

import pytest

from maintsync import MemoryDocumentStore

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    """Clock callable that always returns NOW."""
    return lambda: NOW


@pytest.fixture
def vehicle_doc():
    """Vehicle document with two upcoming tasks and two history records."""
    return {
        "vehicleName": "Civic",
        "plateNumber": "ABC 1234",
        "vehicleImageUri": "file:///photos/civic.jpg",
        "engineType": "Gasoline",
        "currentMileage": "53200",
        "upcomingSchedules": [
            {
                "id": "2",
                "service": "Tire Replacement",
                "date": "Jan 10, 2026",
                "dateObject": "2026-01-10T00:00:00+00:00",
                "dueKm": 60000,
                "icon": "tire",
                "color": "#4E73DF",
                "status": "Pending",
            },
            {
                "id": "1",
                "service": "Oil Change",
                "date": "Dec 12, 2025",
                "dateObject": "2025-12-12T00:00:00+00:00",
                "dueKm": 55000,
                "icon": "oil",
                "color": "#FF5252",
                "status": "Pending",
            },
        ],
        "maintenanceHistory": [
            {
                "id": "102",
                "service": "Aircon Cleaning",
                "shop": "CoolAire Pros",
                "cost": 3500,
                "date": "Aug 15, 2023",
                "status": "Completed",
            },
            {
                "id": "101",
                "service": "Battery Replacement",
                "shop": "Motolite Official",
                "cost": 4500,
                "date": "Oct 12, 2023",
                "status": "Completed",
            },
        ],
    }


@pytest.fixture
def store(vehicle_doc):
    return MemoryDocumentStore({"user_1": vehicle_doc})
