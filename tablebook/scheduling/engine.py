"""
Availability & conflict engine.

Read-only decisions over the table catalog, the reservation ledger and the
opening-hours calendar. Nothing here writes; the lifecycle module persists
what the engine admits, under the table's write lock.

Reservation spans are half-open intervals [start, end): a reservation ending
at 21:00 does not conflict with one starting at 21:00. Only pending and
confirmed reservations occupy a table.
"""
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from tablebook.core.business import get_business
from tablebook.models.opening_hours import OpeningHours
from tablebook.models.reservation import Reservation
from tablebook.models.table import DiningTable
from tablebook.schemas.availability import (
    Admission,
    AdmissionRequest,
    TableAvailability,
    TimeSlotAvailability,
)
from tablebook.schemas.opening_hours import HoursWindow
from tablebook.schemas.table import Table as TableSchema
from tablebook.scheduling import hours as calendar
from tablebook.scheduling.catalog import get_table
from tablebook.scheduling.errors import (
    CapacityError,
    InvalidInput,
    NoAvailableTable,
    OutsideOpeningHours,
    SlotConflict,
)
from tablebook.scheduling.ledger import overlapping


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    return a_start < b_end and b_start < a_end


def check_conflicts(
    db: Session,
    table_id: int,
    start: datetime,
    end: datetime,
    exclude_booking_id: Optional[str] = None,
) -> List[Reservation]:
    """Active reservations on ``table_id`` overlapping [start, end). Empty means free."""
    return overlapping(db, start, end, table_ids=[table_id], exclude_booking_id=exclude_booking_id)


def slot_conflict(table_id: int, start: datetime, end: datetime, conflicts: List[Reservation]) -> SlotConflict:
    return SlotConflict(
        "Table is already booked for this time slot",
        {
            "table_id": table_id,
            "requested_time": start,
            "requested_end_time": end,
            "conflicting_bookings": [
                {
                    "booking_id": r.booking_id,
                    "customer_name": r.customer_name,
                    "booking_time": r.booking_time,
                    "end_time": r.end_time,
                    "status": r.status,
                }
                for r in conflicts
            ],
        },
    )


def _positive(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidInput(f"{name} must be a positive integer", {name: value})
    return value


def candidate_tables(db: Session, party_size: int) -> List[DiningTable]:
    """Tables that seat ``party_size``, smallest first, then by table number."""
    return (
        db.query(DiningTable)
        .filter(DiningTable.capacity >= party_size)
        .order_by(DiningTable.capacity, DiningTable.table_id)
        .all()
    )


# ---------------------------------------------------------------------------
# Admission
# ---------------------------------------------------------------------------


def validate_admission(db: Session, request: AdmissionRequest) -> Admission:
    """
    Decide whether a reservation request can be admitted.

    Checks run in order and the first failure is raised:

    1. positive party size and duration            → InvalidInput
    2. explicit table exists and seats the party   → NotFound / CapacityError
    3. the span fits the day's opening hours        → OutsideOpeningHours
    4. explicit table has no overlapping booking    → SlotConflict
    5. otherwise auto-assign the smallest free table
       that seats the party                         → NoAvailableTable
    """
    duration = request.duration if request.duration is not None else get_business().default_duration
    start = request.booking_time
    if not isinstance(start, datetime):
        raise InvalidInput("Invalid booking time format", {"booking_time": start})
    _positive("duration", duration)
    party_size = _positive("party_size", request.party_size)

    if request.table_id is not None:
        table = get_table(db, request.table_id)
        if table.capacity < party_size:
            raise CapacityError(
                "Table capacity is not sufficient for the party size",
                {
                    "table_id": table.table_id,
                    "table_capacity": table.capacity,
                    "party_size": party_size,
                },
            )

    calendar.check_within_hours(db, start, duration)

    end = start + timedelta(minutes=duration)

    if request.table_id is not None:
        conflicts = check_conflicts(db, request.table_id, start, end, request.exclude_booking_id)
        if conflicts:
            raise slot_conflict(request.table_id, start, end, conflicts)
        return Admission(table_id=request.table_id, booking_time=start, end_time=end, duration=duration)

    candidates = candidate_tables(db, party_size)
    busy = {
        r.table_id
        for r in overlapping(
            db, start, end,
            table_ids=[t.table_id for t in candidates],
            exclude_booking_id=request.exclude_booking_id,
        )
    }
    for table in candidates:
        if table.table_id not in busy:
            return Admission(table_id=table.table_id, booking_time=start, end_time=end, duration=duration)

    raise NoAvailableTable(
        "No tables available for this time slot" if candidates
        else "No tables available for this party size",
        {
            "party_size": party_size,
            "requested_time": start,
            "requested_end_time": end,
            "suitable_tables": len(candidates),
        },
    )


# ---------------------------------------------------------------------------
# Availability lookups
# ---------------------------------------------------------------------------


def _window(hours: OpeningHours) -> HoursWindow:
    return HoursWindow(open=hours.open_time, close=hours.close_time)


def _day_hours(db: Session, day: date) -> Optional[OpeningHours]:
    return (
        db.query(OpeningHours)
        .filter(OpeningHours.day_of_week == calendar.day_of_week(datetime.combine(day, time.min)))
        .first()
    )


def available_tables(
    db: Session,
    day: date,
    at: time,
    duration: Optional[int] = None,
    party_size: Optional[int] = None,
) -> TableAvailability:
    """
    Tables free for [at, at + duration) on ``day``.

    A closed day or a time outside opening hours is reported in the result
    (``is_open`` / ``reason``) with an empty table list, not raised.
    """
    duration = _positive(
        "duration", duration if duration is not None else get_business().default_duration
    )
    if party_size is not None:
        _positive("party_size", party_size)

    all_tables = db.query(DiningTable).order_by(DiningTable.table_id).all()
    hours = _day_hours(db, day)

    if hours is None or not hours.is_open:
        return TableAvailability(
            tables=[],
            is_open=False,
            opening_hours=_window(hours) if hours else None,
            total_tables=len(all_tables),
            booked_tables=0,
            reason=OutsideOpeningHours.CLOSED,
        )

    start = datetime.combine(day, at)
    if not calendar.is_within_hours(hours, start, duration):
        return TableAvailability(
            tables=[],
            is_open=True,
            opening_hours=_window(hours),
            total_tables=len(all_tables),
            booked_tables=0,
            reason=OutsideOpeningHours.OUTSIDE_HOURS,
        )

    end = start + timedelta(minutes=duration)
    busy = {r.table_id for r in overlapping(db, start, end)}
    free = [
        t for t in all_tables
        if t.table_id not in busy and (party_size is None or t.capacity >= party_size)
    ]

    return TableAvailability(
        tables=[TableSchema.model_validate(t) for t in free],
        is_open=True,
        opening_hours=_window(hours),
        total_tables=len(all_tables),
        booked_tables=sum(1 for t in all_tables if t.table_id in busy),
    )


def candidate_start_times(hours: OpeningHours, day: date, duration: int, granularity: int) -> List[datetime]:
    """Start times from opening through closing - duration inclusive, every ``granularity`` minutes."""
    open_at = calendar.minutes_of_day(hours.open_time)
    last = calendar.minutes_of_day(hours.close_time) - duration
    midnight = datetime.combine(day, time.min)
    return [midnight + timedelta(minutes=m) for m in range(open_at, last + 1, granularity)]


def available_time_slots(
    db: Session,
    day: date,
    party_size: int,
    duration: Optional[int] = None,
    granularity: Optional[int] = None,
    not_before: Optional[datetime] = None,
) -> TimeSlotAvailability:
    """
    Start times on ``day`` at which at least one table seating ``party_size``
    is free for the whole duration.

    ``suitable_tables == 0`` tells "no table is big enough" apart from
    "everything is booked". ``not_before`` drops candidates that start earlier.
    """
    party_size = _positive("party_size", party_size)
    duration = _positive(
        "duration", duration if duration is not None else get_business().default_duration
    )
    granularity = _positive(
        "granularity", granularity if granularity is not None else get_business().slot_granularity
    )

    hours = _day_hours(db, day)
    if hours is None or not hours.is_open:
        return TimeSlotAvailability(
            times=[], is_open=False, opening_hours=_window(hours) if hours else None
        )

    tables = candidate_tables(db, party_size)
    if not tables:
        return TimeSlotAvailability(
            times=[], is_open=True, opening_hours=_window(hours), suitable_tables=0
        )

    candidates = candidate_start_times(hours, day, duration, granularity)
    if not_before is not None:
        candidates = [c for c in candidates if c >= not_before]

    busy: Dict[int, List[Reservation]] = {t.table_id: [] for t in tables}
    if candidates:
        day_start = candidates[0]
        day_end = candidates[-1] + timedelta(minutes=duration)
        for r in overlapping(db, day_start, day_end, table_ids=list(busy)):
            busy[r.table_id].append(r)

    def is_free(table_id: int, start: datetime, end: datetime) -> bool:
        return not any(overlaps(start, end, r.booking_time, r.end_time) for r in busy[table_id])

    times = []
    for start in candidates:
        end = start + timedelta(minutes=duration)
        if any(is_free(t.table_id, start, end) for t in tables):
            times.append(start.time())

    return TimeSlotAvailability(
        times=times,
        is_open=True,
        opening_hours=_window(hours),
        suitable_tables=len(tables),
    )
