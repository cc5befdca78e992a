"""Status enum for schedule and history records."""

from enum import Enum


class TaskStatus(Enum):
    """Lifecycle of a service record. Values match the stored strings."""

    PENDING = "Pending"  # Still in the upcoming set
    COMPLETED = "Completed"  # Moved to history
