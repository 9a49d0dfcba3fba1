from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel, Field
from datetime import datetime

from tablebook.models.table import TableStatus


class TableBase(BaseModel):
    table_id: int = Field(..., gt=0)
    capacity: int = Field(..., gt=0)
    location: str = Field(..., min_length=1)


class TableCreate(TableBase):
    status: TableStatus = TableStatus.available


# Status is derived from reservations and cannot be patched directly
class TableUpdate(BaseModel):
    capacity: Optional[int] = Field(None, gt=0)
    location: Optional[str] = Field(None, min_length=1)


class Table(TableBase):
    status: TableStatus

    class Config:
        from_attributes = True


class TableReservationSummary(BaseModel):
    booking_id: str
    customer_name: str
    party_size: int
    booking_time: datetime
    end_time: datetime
    status: str

    class Config:
        from_attributes = True


# GET /admin/tables/{table_id}: table plus its active reservations
class TableDetail(Table):
    reservations: List[TableReservationSummary] = []
