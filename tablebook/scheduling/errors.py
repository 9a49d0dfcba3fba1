"""
Typed rejections raised by the scheduling core.

Every rejection carries a machine-readable ``kind``, a human message and a
``detail`` dict with whatever the caller needs to render an actionable
message (which table, which conflicting reservations, which hours). The API
layer maps ``status_code`` straight onto the HTTP response.
"""
from typing import Any, Optional

from fastapi import status


class SchedulingError(Exception):
    kind = "scheduling_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, detail: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.kind, "message": self.message, "detail": self.detail}


class InvalidInput(SchedulingError):
    kind = "invalid_input"


class NotFound(SchedulingError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class CapacityError(SchedulingError):
    kind = "capacity_error"


class OutsideOpeningHours(SchedulingError):
    kind = "outside_opening_hours"

    # Sub-reasons, exposed as detail["reason"]
    CLOSED = "closed"
    OUTSIDE_HOURS = "outside_hours"

    @property
    def reason(self) -> Optional[str]:
        return self.detail.get("reason")


class SlotConflict(SchedulingError):
    kind = "slot_conflict"
    status_code = status.HTTP_409_CONFLICT


class NoAvailableTable(SchedulingError):
    kind = "no_available_table"
    status_code = status.HTTP_409_CONFLICT


class Conflict(SchedulingError):
    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class InvalidTransition(SchedulingError):
    kind = "invalid_transition"
    status_code = status.HTTP_409_CONFLICT


class ValidationError(SchedulingError):
    kind = "validation_error"
