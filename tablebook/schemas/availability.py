from typing import List, Optional
from pydantic import BaseModel, field_validator
from datetime import datetime, time

from tablebook.core.business import get_business
from tablebook.schemas.opening_hours import HoursWindow
from tablebook.schemas.table import Table


# ---------------------------------------------------------------------------
# Admission: input and outcome of the engine's decision
# ---------------------------------------------------------------------------

class AdmissionRequest(BaseModel):
    party_size: int
    booking_time: datetime
    duration: Optional[int] = None
    table_id: Optional[int] = None          # None → auto-assign
    exclude_booking_id: Optional[str] = None  # set when re-checking an existing reservation

    @field_validator("booking_time", mode="after")
    @classmethod
    def to_local_time(cls, v):
        return get_business().to_local(v)


class Admission(BaseModel):
    table_id: int
    booking_time: datetime
    end_time: datetime
    duration: int


# ---------------------------------------------------------------------------
# Public availability lookups
# ---------------------------------------------------------------------------

class TableAvailability(BaseModel):
    tables: List[Table]
    is_open: bool
    opening_hours: Optional[HoursWindow] = None
    total_tables: int = 0
    booked_tables: int = 0
    reason: Optional[str] = None            # "closed" | "outside_hours"


class TimeSlotAvailability(BaseModel):
    times: List[time]
    is_open: bool
    opening_hours: Optional[HoursWindow] = None
    suitable_tables: int = 0                # tables large enough for the party
