from datetime import date, time
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from tablebook.core.business import BusinessProfile, get_business
from tablebook.db.session import get_db
from tablebook.models.reservation import ReservationSource
from tablebook.schemas.availability import TableAvailability, TimeSlotAvailability
from tablebook.schemas.opening_hours import OpeningHours as OpeningHoursSchema
from tablebook.schemas.reservation import (
    ExternalReservationCreate,
    Reservation as ReservationSchema,
    ReservationCreate,
)
from tablebook.scheduling import engine, hours as calendar, lifecycle
from tablebook.scheduling.errors import InvalidInput

router = APIRouter(prefix="/availability", tags=["Availability"])
hours_router = APIRouter(prefix="/opening-hours", tags=["Opening Hours"])
reservation_router = APIRouter(prefix="/reservations", tags=["Public Reservations"])


# ---------------------------------------------------------------------------
# GET /availability/tables?date=&time=&duration=&party_size=
# ---------------------------------------------------------------------------


@router.get("/tables", response_model=TableAvailability)
def get_available_tables(
    day: date = Query(..., alias="date", description="Date to check (YYYY-MM-DD)"),
    at: time = Query(..., alias="time", description="Start time (HH:MM)"),
    duration: Optional[int] = Query(None, description="Length of the visit in minutes"),
    party_size: Optional[int] = Query(None, description="Only tables seating at least this many"),
    db: Session = Depends(get_db),
):
    """
    Tables with no pending or confirmed booking overlapping the requested
    window. A closed day or a time outside opening hours returns an empty
    list with `is_open` / `reason` set rather than an error.
    """
    return engine.available_tables(db, day, at, duration=duration, party_size=party_size)


# ---------------------------------------------------------------------------
# GET /availability/times?date=&party_size=&duration=
# ---------------------------------------------------------------------------


@router.get("/times", response_model=TimeSlotAvailability)
def get_available_times(
    day: date = Query(..., alias="date", description="Date to check (YYYY-MM-DD)"),
    party_size: int = Query(2, description="Number of guests"),
    duration: Optional[int] = Query(None, description="Length of the visit in minutes"),
    db: Session = Depends(get_db),
    business: BusinessProfile = Depends(get_business),
):
    """
    Start times on `date` at which at least one table large enough for the
    party is free. For today, times that have already passed are left out.
    """
    now = business.now()
    if day < now.date():
        raise InvalidInput("Cannot book dates in the past", {"date": day})

    return engine.available_time_slots(
        db,
        day,
        party_size,
        duration=duration,
        granularity=business.slot_granularity,
        not_before=now if day == now.date() else None,
    )


# ---------------------------------------------------------------------------
# GET /opening-hours
# ---------------------------------------------------------------------------


@hours_router.get("/", response_model=List[OpeningHoursSchema])
def get_opening_hours(db: Session = Depends(get_db)):
    """The weekly calendar, Sunday first. Seeds the defaults on first use."""
    return calendar.seed_default_hours(db)


# ---------------------------------------------------------------------------
# POST /reservations/external: public booking widget
# ---------------------------------------------------------------------------


@reservation_router.post(
    "/external",
    response_model=ReservationSchema,
    status_code=status.HTTP_201_CREATED,
)
def create_external_reservation(
    data: ExternalReservationCreate,
    db: Session = Depends(get_db),
    business: BusinessProfile = Depends(get_business),
):
    """
    Book from the public widget. A table is always auto-assigned (smallest
    table that fits and is free) and the reservation always starts pending.
    """
    request = ReservationCreate(**data.model_dump(exclude={"source"}))
    return lifecycle.create_reservation(
        db,
        request,
        source=ReservationSource(data.source),
        trusted=False,
        as_of=business.now(),
    )
