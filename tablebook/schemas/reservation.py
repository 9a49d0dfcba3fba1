from typing import Literal, Optional
from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import datetime

from tablebook.core.business import get_business
from tablebook.models.reservation import ReservationStatus, ReservationSource
from tablebook.schemas.table import Table


def _blank_to_none(v):
    if isinstance(v, str) and v.strip() == "":
        return None
    return v


def _localise(v):
    if isinstance(v, datetime):
        return get_business().to_local(v)
    return v


# Reservation: Create (POST /admin/reservations)
class ReservationCreate(BaseModel):
    customer_name: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    party_size: int
    table_id: Optional[int] = None      # omit to auto-assign
    booking_time: datetime
    duration: Optional[int] = None      # minutes, defaults to the business default
    status: Optional[ReservationStatus] = None
    notes: Optional[str] = None

    @field_validator("email", "phone", "table_id", mode="before")
    @classmethod
    def parse_empty_str_to_none(cls, v):
        return _blank_to_none(v)

    @field_validator("booking_time", mode="after")
    @classmethod
    def to_local_time(cls, v):
        return _localise(v)


# Reservation: Create from the public booking widget (POST /reservations/external)
class ExternalReservationCreate(BaseModel):
    customer_name: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    party_size: int
    booking_time: datetime
    duration: Optional[int] = None
    notes: Optional[str] = None
    source: Literal["external", "embedded_form"] = "external"

    @field_validator("email", "phone", mode="before")
    @classmethod
    def parse_empty_str_to_none(cls, v):
        return _blank_to_none(v)

    @field_validator("booking_time", mode="after")
    @classmethod
    def to_local_time(cls, v):
        return _localise(v)


# Reservation: Update (PATCH /admin/reservations/{booking_id})
class ReservationUpdate(BaseModel):
    customer_name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    party_size: Optional[int] = None
    table_id: Optional[int] = None
    booking_time: Optional[datetime] = None
    duration: Optional[int] = None
    notes: Optional[str] = None
    status: Optional[ReservationStatus] = None

    @field_validator("email", "phone", mode="before")
    @classmethod
    def parse_empty_str_to_none(cls, v):
        return _blank_to_none(v)

    @field_validator("booking_time", mode="after")
    @classmethod
    def to_local_time(cls, v):
        return _localise(v)

    def schedule_fields(self) -> dict:
        """The subset of set fields that changes when or where the party sits."""
        keys = {"party_size", "table_id", "booking_time", "duration"}
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if k in keys and v is not None}

    def detail_fields(self) -> dict:
        keys = {"customer_name", "email", "phone", "notes"}
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if k in keys}


# Reservation: Status change (PATCH /admin/reservations/{booking_id}/status)
class ReservationStatusUpdate(BaseModel):
    status: ReservationStatus


# Reservation: Full response
class Reservation(BaseModel):
    booking_id: str
    customer_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    party_size: int
    table_id: int
    booking_time: datetime
    end_time: datetime
    duration: int
    status: ReservationStatus
    notes: Optional[str] = None
    source: ReservationSource
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    table: Optional[Table] = None

    class Config:
        from_attributes = True
