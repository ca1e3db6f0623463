"""
Exceptions raised by the reconciliation services.
"""
from typing import Optional


class ReconciliationError(Exception):
    """Base error for the trip reconciliation engine."""


class PersistenceError(ReconciliationError):
    """A write could not be completed; the unit of work was rolled back."""

    def __init__(self, stage: str, trip_id: Optional[int] = None, message: str = ""):
        self.stage = stage
        self.trip_id = trip_id
        if not message:
            message = f"Failed to persist {stage}"
            if trip_id is not None:
                message += f" for trip {trip_id}"
        super().__init__(message)
