"""Reservation ledger: lookups and listings over the reservations table."""
import random
import string
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session, joinedload

from tablebook.models.reservation import Reservation, ACTIVE_STATUSES
from tablebook.scheduling.errors import InvalidInput, NotFound

PERIODS = ("today", "future", "past", "week", "month", "upcoming")


def generate_booking_id(db: Session) -> str:
    """Generate a unique 'TB-XXXXXXXX' booking reference."""
    chars = string.ascii_uppercase + string.digits
    while True:
        booking_id = "TB-" + "".join(random.choices(chars, k=8))
        if not db.query(Reservation.id).filter(Reservation.booking_id == booking_id).first():
            return booking_id


def get_reservation(db: Session, booking_id: str) -> Reservation:
    reservation = (
        db.query(Reservation)
        .options(joinedload(Reservation.table))
        .filter(Reservation.booking_id == booking_id)
        .first()
    )
    if not reservation:
        raise NotFound("Booking not found", {"booking_id": booking_id})
    return reservation


def overlapping(
    db: Session,
    start: datetime,
    end: datetime,
    table_ids: Optional[Iterable[int]] = None,
    exclude_booking_id: Optional[str] = None,
) -> List[Reservation]:
    """Pending/confirmed reservations whose span overlaps [start, end)."""
    query = db.query(Reservation).filter(
        Reservation.status.in_(ACTIVE_STATUSES),
        Reservation.booking_time < end,
        Reservation.end_time > start,
    )
    if table_ids is not None:
        query = query.filter(Reservation.table_id.in_(list(table_ids)))
    if exclude_booking_id:
        query = query.filter(Reservation.booking_id != exclude_booking_id)
    return query.order_by(Reservation.booking_time, Reservation.table_id).all()


def period_range(period: str, now: datetime) -> Tuple[Optional[datetime], Optional[datetime]]:
    """
    Inclusive [start, end] bounds for a named listing period.

    today    - the current day
    future   - from tomorrow on
    past     - before today
    week     - today and the next 6 days
    month    - today and the next 29 days
    upcoming - from today on (active bookings only, see list_reservations)
    """
    today_start = datetime.combine(now.date(), time.min)

    def end_of(day: date) -> datetime:
        return datetime.combine(day, time.max)

    if period == "today":
        return today_start, end_of(now.date())
    if period == "future":
        return today_start + timedelta(days=1), None
    if period == "past":
        return None, today_start - timedelta(microseconds=1)
    if period == "week":
        return today_start, end_of(now.date() + timedelta(days=6))
    if period == "month":
        return today_start, end_of(now.date() + timedelta(days=29))
    if period == "upcoming":
        return today_start, None
    raise InvalidInput(f"Unknown period '{period}'", {"period": period, "allowed": list(PERIODS)})


def list_reservations(
    db: Session,
    now: datetime,
    status: Optional[str] = None,
    on_date: Optional[date] = None,
    period: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    page: int = 1,
    limit: int = 50,
) -> Tuple[int, List[Reservation]]:
    """
    Filtered, paginated reservations ordered by start time.

    ``on_date`` wins over an explicit ``start``/``end`` range, which wins over
    ``period``.
    """
    query = db.query(Reservation).options(joinedload(Reservation.table))

    if status:
        query = query.filter(Reservation.status == status)

    lower = upper = None
    if on_date:
        lower, upper = datetime.combine(on_date, time.min), datetime.combine(on_date, time.max)
    elif start and end:
        lower, upper = start, end
    elif period:
        lower, upper = period_range(period, now)
        if period == "upcoming":
            query = query.filter(Reservation.status.in_(ACTIVE_STATUSES))

    if lower is not None:
        query = query.filter(Reservation.booking_time >= lower)
    if upper is not None:
        query = query.filter(Reservation.booking_time <= upper)

    total = query.count()
    reservations = (
        query.order_by(Reservation.booking_time, Reservation.table_id)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return total, reservations
