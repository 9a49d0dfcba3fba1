"""
Reservation lifecycle: creation, status transitions and rescheduling.

Every write re-checks the slot under the table's write lock before it
commits, then refreshes the cached status of each table it touched.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from sqlalchemy.orm import Session

from tablebook.core.business import get_business
from tablebook.models.reservation import Reservation, ReservationSource, ReservationStatus
from tablebook.models.table import DiningTable
from tablebook.schemas.availability import AdmissionRequest
from tablebook.schemas.reservation import ReservationCreate
from tablebook.scheduling.catalog import recompute_status
from tablebook.scheduling.engine import check_conflicts, slot_conflict, validate_admission
from tablebook.scheduling.errors import (
    InvalidInput,
    InvalidTransition,
    NoAvailableTable,
    SchedulingError,
)
from tablebook.scheduling.ledger import generate_booking_id, get_reservation
from tablebook.scheduling.locks import table_lock

logger = logging.getLogger(__name__)

PENDING = ReservationStatus.pending
CONFIRMED = ReservationStatus.confirmed
CANCELLED = ReservationStatus.cancelled

ALLOWED_TRANSITIONS = {
    PENDING: {CONFIRMED, CANCELLED},
    CONFIRMED: {CANCELLED},
    CANCELLED: set(),
}

SCHEDULE_FIELDS = ("table_id", "booking_time", "duration", "party_size")
DETAIL_FIELDS = ("customer_name", "email", "phone", "notes")


def _now(as_of: Optional[datetime]) -> datetime:
    return as_of if as_of is not None else get_business().now()


def initial_status(
    requested: Optional[ReservationStatus],
    source: ReservationSource,
    trusted: bool,
) -> ReservationStatus:
    """
    Only an authenticated internal actor may create a reservation as
    confirmed; everything else starts pending.
    """
    if requested == CANCELLED:
        raise InvalidInput(
            "A reservation cannot be created as cancelled",
            {"status": requested.value},
        )
    if requested == CONFIRMED and trusted and source == ReservationSource.internal:
        return CONFIRMED
    return PENDING


def create_reservation(
    db: Session,
    data: ReservationCreate,
    source: ReservationSource = ReservationSource.internal,
    trusted: bool = False,
    as_of: Optional[datetime] = None,
) -> Reservation:
    """
    Admit and persist a new reservation.

    If another writer takes the auto-assigned table between the admission
    check and the lock, admission runs again against the new state, which
    moves on to the next candidate table. An explicitly chosen table that was
    taken in the meantime is a SlotConflict.
    """
    source = ReservationSource(source)
    status = initial_status(data.status, source, trusted)
    request = AdmissionRequest(
        party_size=data.party_size,
        booking_time=data.booking_time,
        duration=data.duration,
        table_id=data.table_id,
    )

    table_count = db.query(DiningTable.id).count()
    for _ in range(table_count + 1):
        try:
            admission = validate_admission(db, request)
        except SchedulingError as exc:
            logger.warning("Reservation for %s rejected: %s", data.customer_name, exc.message)
            raise

        with table_lock(db, admission.table_id):
            conflicts = check_conflicts(db, admission.table_id, admission.booking_time, admission.end_time)
            if not conflicts:
                reservation = Reservation(
                    booking_id=generate_booking_id(db),
                    customer_name=data.customer_name,
                    email=data.email,
                    phone=data.phone,
                    party_size=data.party_size,
                    table_id=admission.table_id,
                    booking_time=admission.booking_time,
                    end_time=admission.end_time,
                    duration=admission.duration,
                    status=status.value,
                    notes=data.notes or "",
                    source=source.value,
                )
                db.add(reservation)
                db.flush()
                recompute_status(db, admission.table_id, _now(as_of))
                db.commit()

        if not conflicts:
            db.refresh(reservation)
            logger.info(
                "Created %s reservation %s: table %d, party of %d at %s (%s).",
                reservation.status, reservation.booking_id, reservation.table_id,
                reservation.party_size, reservation.booking_time, reservation.source,
            )
            return reservation

        if request.table_id is not None:
            raise slot_conflict(admission.table_id, admission.booking_time, admission.end_time, conflicts)
        logger.info("Table %d was taken concurrently; re-running auto-assign.", admission.table_id)

    raise NoAvailableTable(
        "No tables available for this time slot",
        {"party_size": data.party_size, "requested_time": data.booking_time},
    )


def _parse_status(value) -> ReservationStatus:
    try:
        return ReservationStatus(value)
    except ValueError:
        raise InvalidInput(
            "Invalid status. Must be one of: pending, confirmed, cancelled",
            {"status": value},
        )


def _check_transition(booking_id: str, current: ReservationStatus, new_status: ReservationStatus) -> None:
    if new_status not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransition(
            f"Cannot change a {current.value} reservation to {new_status.value}",
            {
                "booking_id": booking_id,
                "current_status": current.value,
                "requested_status": new_status.value,
                "allowed": sorted(s.value for s in ALLOWED_TRANSITIONS[current]),
            },
        )


def _check_details(fields: Dict) -> None:
    for field, value in fields.items():
        if field not in DETAIL_FIELDS:
            raise InvalidInput(f"Field '{field}' cannot be updated", {"field": field})
        if field == "customer_name" and not (value or "").strip():
            raise InvalidInput("Customer name cannot be empty", {"customer_name": value})


def _check_movable(reservation: Reservation) -> None:
    if reservation.status == CANCELLED.value:
        raise InvalidTransition(
            "Cancelled reservations cannot be changed",
            {"booking_id": reservation.booking_id, "current_status": reservation.status},
        )


def set_status(
    db: Session,
    booking_id: str,
    new_status: ReservationStatus,
    as_of: Optional[datetime] = None,
) -> Reservation:
    new_status = _parse_status(new_status)
    reservation = get_reservation(db, booking_id)

    with table_lock(db, reservation.table_id):
        # Re-read under the lock so two concurrent transitions cannot both pass
        db.refresh(reservation)
        current = ReservationStatus(reservation.status)
        _check_transition(booking_id, current, new_status)

        reservation.status = new_status.value
        if new_status == CANCELLED:
            reservation.cancelled_at = datetime.now(timezone.utc)
        db.flush()
        recompute_status(db, reservation.table_id, _now(as_of))
        db.commit()

    db.refresh(reservation)
    logger.info("Reservation %s: %s -> %s.", booking_id, current.value, new_status.value)
    return reservation


def cancel_reservation(db: Session, booking_id: str, as_of: Optional[datetime] = None) -> Reservation:
    """Soft delete: cancellation is a status write, the row stays in the ledger."""
    return set_status(db, booking_id, CANCELLED, as_of=as_of)


def update_reservation(
    db: Session,
    booking_id: str,
    schedule: Optional[Dict] = None,
    status: Optional[ReservationStatus] = None,
    details: Optional[Dict] = None,
    as_of: Optional[datetime] = None,
) -> Reservation:
    """
    Apply a combined edit (schedule, status and guest details) as one write.

    Every part is checked before anything is stored and the whole edit
    commits once, so a rejected part leaves the reservation unchanged.
    Schedule changes (``table_id``, ``booking_time``, ``duration``,
    ``party_size``) are re-admitted like a new booking, ignoring the
    reservation itself. A ``status`` equal to the current one is left alone.
    """
    schedule = {k: v for k, v in (schedule or {}).items() if v is not None}
    details = details or {}

    unknown = set(schedule) - set(SCHEDULE_FIELDS)
    if unknown:
        raise InvalidInput(f"Field '{sorted(unknown)[0]}' cannot be updated", {"fields": sorted(unknown)})
    _check_details(details)
    new_status = _parse_status(status) if status is not None else None

    reservation = get_reservation(db, booking_id)
    current = ReservationStatus(reservation.status)
    if new_status == current:
        new_status = None
    if new_status is not None:
        _check_transition(booking_id, current, new_status)

    admission = None
    if schedule:
        _check_movable(reservation)
        admission = validate_admission(
            db,
            AdmissionRequest(
                party_size=schedule.get("party_size", reservation.party_size),
                booking_time=schedule.get("booking_time", reservation.booking_time),
                duration=schedule.get("duration", reservation.duration),
                table_id=schedule.get("table_id", reservation.table_id),
                exclude_booking_id=booking_id,
            ),
        )

    old_table_id = reservation.table_id
    new_table_id = admission.table_id if admission else old_table_id

    with table_lock(db, old_table_id, new_table_id):
        db.refresh(reservation)
        current = ReservationStatus(reservation.status)

        if admission is not None:
            _check_movable(reservation)
            conflicts = check_conflicts(
                db, admission.table_id, admission.booking_time, admission.end_time, booking_id
            )
            if conflicts:
                raise slot_conflict(admission.table_id, admission.booking_time, admission.end_time, conflicts)

            reservation.table_id = admission.table_id
            reservation.booking_time = admission.booking_time
            reservation.end_time = admission.end_time
            reservation.duration = admission.duration
            reservation.party_size = schedule.get("party_size", reservation.party_size)

        if new_status is not None and new_status != current:
            _check_transition(booking_id, current, new_status)
            reservation.status = new_status.value
            if new_status == CANCELLED:
                reservation.cancelled_at = datetime.now(timezone.utc)

        for field, value in details.items():
            setattr(reservation, field, value)

        db.flush()
        now = _now(as_of)
        recompute_status(db, old_table_id, now)
        if new_table_id != old_table_id:
            recompute_status(db, new_table_id, now)
        db.commit()

    db.refresh(reservation)
    if admission is not None:
        logger.info(
            "Rescheduled reservation %s: table %d -> %d at %s for %d min.",
            booking_id, old_table_id, reservation.table_id, reservation.booking_time, reservation.duration,
        )
    if new_status is not None:
        logger.info("Reservation %s: %s -> %s.", booking_id, current.value, reservation.status)
    return reservation


def reschedule(
    db: Session,
    booking_id: str,
    table_id: Optional[int] = None,
    booking_time: Optional[datetime] = None,
    duration: Optional[int] = None,
    party_size: Optional[int] = None,
    as_of: Optional[datetime] = None,
) -> Reservation:
    """Move a reservation to another table, time, duration or party size."""
    reservation = get_reservation(db, booking_id)
    _check_movable(reservation)
    return update_reservation(
        db,
        booking_id,
        schedule={
            "table_id": table_id,
            "booking_time": booking_time,
            "duration": duration,
            "party_size": party_size,
        },
        as_of=as_of,
    )


def update_details(db: Session, booking_id: str, fields: Dict) -> Reservation:
    """Change the guest-facing details of a reservation (name, contact, notes)."""
    return update_reservation(db, booking_id, details=fields)
