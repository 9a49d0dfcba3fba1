"""
Table catalog.

A table's ``status`` column is a cache derived from the reservation ledger;
``recompute_status`` is the only writer. It is refreshed after every
reservation write, after a bulk restore and periodically as time passes.
"""
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from tablebook.models.reservation import Reservation, ReservationStatus, ACTIVE_STATUSES
from tablebook.models.table import DiningTable, TableStatus
from tablebook.scheduling.errors import Conflict, InvalidInput, NotFound
from tablebook.scheduling.locks import table_lock

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def list_tables(db: Session, status: Optional[TableStatus] = None) -> List[DiningTable]:
    query = db.query(DiningTable)
    if status:
        query = query.filter(DiningTable.status == TableStatus(status).value)
    return query.order_by(DiningTable.table_id).all()


def get_table(db: Session, table_id: int) -> DiningTable:
    table = db.query(DiningTable).filter(DiningTable.table_id == table_id).first()
    if not table:
        raise NotFound("Table not found", {"table_id": table_id})
    return table


def active_reservations(db: Session, table_id: int) -> List[Reservation]:
    """Pending and confirmed reservations for a table, past or future."""
    return (
        db.query(Reservation)
        .filter(
            Reservation.table_id == table_id,
            Reservation.status.in_(ACTIVE_STATUSES),
        )
        .order_by(Reservation.booking_time)
        .all()
    )


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


def create_table(
    db: Session,
    table_id: int,
    capacity: int,
    location: str,
    status: TableStatus = TableStatus.available,
) -> DiningTable:
    if table_id <= 0 or capacity <= 0:
        raise InvalidInput(
            "Table number and capacity must be positive integers",
            {"table_id": table_id, "capacity": capacity},
        )
    if db.query(DiningTable.id).filter(DiningTable.table_id == table_id).first():
        raise Conflict("Table with this ID already exists", {"table_id": table_id})

    table = DiningTable(
        table_id=table_id,
        capacity=capacity,
        location=location,
        status=TableStatus(status).value,
    )
    db.add(table)
    db.commit()
    db.refresh(table)
    logger.info("Created table %d (capacity %d, %s).", table_id, capacity, location)
    return table


def update_table(db: Session, table_id: int, fields: Dict) -> DiningTable:
    """
    Change a table's capacity or location.

    Capacity may not drop below the party size of any pending or confirmed
    reservation on the table.
    """
    get_table(db, table_id)

    for field, value in fields.items():
        if field not in ("capacity", "location"):
            raise InvalidInput(f"Field '{field}' cannot be updated", {"field": field})

    capacity = fields.get("capacity")
    if capacity is not None and capacity <= 0:
        raise InvalidInput("Capacity must be a positive integer", {"capacity": capacity})

    with table_lock(db, table_id) as locked:
        table = locked[table_id]
        if capacity is not None:
            too_large = [r for r in active_reservations(db, table_id) if r.party_size > capacity]
            if too_large:
                raise Conflict(
                    "Cannot reduce capacity below the party size of active bookings",
                    {
                        "table_id": table_id,
                        "capacity": capacity,
                        "active_bookings": [r.booking_id for r in too_large],
                    },
                )

        for field, value in fields.items():
            if value is not None:
                setattr(table, field, value)
        db.commit()

    db.refresh(table)
    return table


def delete_table(db: Session, table_id: int) -> None:
    """
    Remove a table that holds no pending or confirmed reservations.

    Cancelled reservations for the table go with it. Runs under the table's
    write lock so a concurrent booking cannot slip in between the check and
    the delete.
    """
    get_table(db, table_id)

    with table_lock(db, table_id) as locked:
        table = locked.get(table_id)
        if table is None:
            raise NotFound("Table not found", {"table_id": table_id})

        blocking = active_reservations(db, table_id)
        if blocking:
            raise Conflict(
                "Cannot delete table with active bookings",
                {
                    "table_id": table_id,
                    "active_bookings": [r.booking_id for r in blocking],
                },
            )

        db.query(Reservation).filter(Reservation.table_id == table_id).delete(
            synchronize_session="fetch"
        )
        db.delete(table)
        db.commit()

    logger.info("Deleted table %d.", table_id)


# ---------------------------------------------------------------------------
# Derived status
# ---------------------------------------------------------------------------


def derive_status(reservations: Iterable[Reservation], as_of: datetime) -> TableStatus:
    """
    Status of a table given its reservations at ``as_of``.

    occupied - a confirmed reservation's span contains ``as_of``
    reserved - a confirmed reservation starts later, or a pending one is
               running now
    available - otherwise
    """
    status = TableStatus.available
    for reservation in reservations:
        running = reservation.booking_time <= as_of < reservation.end_time
        if reservation.status == ReservationStatus.confirmed.value:
            if running:
                return TableStatus.occupied
            if reservation.booking_time > as_of:
                status = TableStatus.reserved
        elif reservation.status == ReservationStatus.pending.value and running:
            status = TableStatus.reserved
    return status


def _relevant_reservations(db: Session, as_of: datetime, table_id: Optional[int] = None):
    query = db.query(Reservation).filter(
        Reservation.status.in_(ACTIVE_STATUSES),
        Reservation.end_time > as_of,
    )
    if table_id is not None:
        query = query.filter(Reservation.table_id == table_id)
    return query.all()


def recompute_status(db: Session, table_id: int, as_of: datetime) -> TableStatus:
    """Refresh the cached status of one table. The caller commits."""
    table = get_table(db, table_id)
    status = derive_status(_relevant_reservations(db, as_of, table_id), as_of)
    if table.status != status.value:
        logger.info("Table %d status %s -> %s.", table_id, table.status, status.value)
        table.status = status.value
    return status


def recompute_all(db: Session, as_of: datetime) -> int:
    """Refresh every table's cached status; returns how many changed. The caller commits."""
    by_table: Dict[int, List[Reservation]] = {}
    for reservation in _relevant_reservations(db, as_of):
        by_table.setdefault(reservation.table_id, []).append(reservation)

    changed = 0
    for table in db.query(DiningTable).all():
        status = derive_status(by_table.get(table.table_id, []), as_of)
        if table.status != status.value:
            table.status = status.value
            changed += 1
    return changed
