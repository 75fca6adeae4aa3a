"""
Per-unit status and completed-of-total counters for a run.
"""

from enum import Enum


class UnitStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


# Allowed forward moves; anything else is a regression
_TRANSITIONS = {
    UnitStatus.QUEUED: {UnitStatus.PROCESSING},
    UnitStatus.PROCESSING: {UnitStatus.COMPLETED, UnitStatus.ERROR},
    UnitStatus.COMPLETED: set(),
    UnitStatus.ERROR: set(),
}


class ProgressTracker:
    """
    Tracks each unit's status plus an aggregate counter.

    Counters are weighted by unit size: papers in text mode, files in
    file mode.
    """

    def __init__(self):
        self.statuses = {}
        self.names = {}
        self.sizes = {}

    def register(self, unit_id: str, name: str, size: int = 1) -> None:
        """Add a unit in the queued state, keeping insertion order."""
        self.statuses[unit_id] = UnitStatus.QUEUED
        self.names[unit_id] = name
        self.sizes[unit_id] = size

    def remove(self, unit_id: str) -> None:
        if self.statuses.get(unit_id) == UnitStatus.PROCESSING:
            raise ValueError(f"Cannot remove unit {unit_id} while it is processing")
        self.statuses.pop(unit_id, None)
        self.names.pop(unit_id, None)
        self.sizes.pop(unit_id, None)

    def mark(self, unit_id: str, status: UnitStatus) -> None:
        """Move a unit forward. Raises ValueError on an illegal transition."""
        current = self.statuses[unit_id]
        if status not in _TRANSITIONS[current]:
            raise ValueError(f"Illegal status change for {unit_id}: {current.value} -> {status.value}")
        self.statuses[unit_id] = status

    def status(self, unit_id: str) -> UnitStatus:
        return self.statuses[unit_id]

    def clear(self) -> None:
        self.statuses.clear()
        self.names.clear()
        self.sizes.clear()

    @property
    def total(self) -> int:
        return sum(self.sizes.values())

    @property
    def completed(self) -> int:
        return sum(
            self.sizes[unit_id]
            for unit_id, status in self.statuses.items()
            if status == UnitStatus.COMPLETED
        )

    def items(self) -> list:
        """(unit_id, name, status) tuples in queue order."""
        return [(unit_id, self.names[unit_id], status) for unit_id, status in self.statuses.items()]
