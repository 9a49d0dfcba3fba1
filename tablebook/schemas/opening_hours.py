from datetime import time
from pydantic import BaseModel


class OpeningHoursEntry(BaseModel):
    day_of_week: int            # 0 = Sunday … 6 = Saturday
    is_open: bool
    open_time: time
    close_time: time


class OpeningHours(OpeningHoursEntry):
    class Config:
        from_attributes = True


# Compact open/close pair echoed back by availability lookups
class HoursWindow(BaseModel):
    open: time
    close: time
