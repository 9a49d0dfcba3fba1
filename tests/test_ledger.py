"""Tests for reservation lookups and filtered listings."""

from datetime import timedelta

import pytest

from conftest import MONDAY, at
from tablebook.schemas.reservation import ReservationCreate
from tablebook.scheduling import ledger, lifecycle
from tablebook.scheduling.errors import InvalidInput, NotFound

TUESDAY = MONDAY + timedelta(days=1)


@pytest.fixture
def bookings(seeded_db):
    def book(start, table_id, status="confirmed"):
        return lifecycle.create_reservation(
            seeded_db,
            ReservationCreate(
                customer_name="Guest", party_size=2, table_id=table_id,
                booking_time=start, status=status,
            ),
            trusted=True,
            as_of=at(MONDAY, 9),
        )

    first = book(at(MONDAY, 18), 1)
    second = book(at(MONDAY, 19), 6, status="pending")
    third = book(at(TUESDAY, 13), 1)
    lifecycle.cancel_reservation(seeded_db, third.booking_id, as_of=at(MONDAY, 9))
    return first, second, third


class TestLedger:
    """Lookups and listings."""

    def test_get_reservation_loads_table(self, seeded_db, bookings):
        reservation = ledger.get_reservation(seeded_db, bookings[0].booking_id)

        assert reservation.table.location == "Window"

    def test_get_unknown(self, seeded_db):
        with pytest.raises(NotFound):
            ledger.get_reservation(seeded_db, "TB-00000000")

    def test_overlapping_ignores_cancelled(self, seeded_db, bookings):
        rows = ledger.overlapping(seeded_db, at(MONDAY, 0), at(TUESDAY, 23))

        assert [r.booking_id for r in rows] == [bookings[0].booking_id, bookings[1].booking_id]

    def test_list_by_date(self, seeded_db, bookings):
        total, rows = ledger.list_reservations(seeded_db, at(MONDAY, 9), on_date=TUESDAY)

        assert total == 1
        assert rows[0].status == "cancelled"

    def test_list_by_status(self, seeded_db, bookings):
        total, rows = ledger.list_reservations(seeded_db, at(MONDAY, 9), status="pending")

        assert total == 1
        assert rows[0].booking_id == bookings[1].booking_id

    def test_today_and_upcoming(self, seeded_db, bookings):
        total, _ = ledger.list_reservations(seeded_db, at(MONDAY, 9), period="today")
        assert total == 2

        total, _ = ledger.list_reservations(seeded_db, at(MONDAY, 9), period="upcoming")
        assert total == 2

        total, _ = ledger.list_reservations(seeded_db, at(MONDAY, 9), period="future")
        assert total == 1

        total, _ = ledger.list_reservations(seeded_db, at(TUESDAY, 9), period="past")
        assert total == 2

    def test_pagination_keeps_total(self, seeded_db, bookings):
        total, rows = ledger.list_reservations(seeded_db, at(MONDAY, 9), page=2, limit=2)

        assert total == 3
        assert [r.booking_id for r in rows] == [bookings[2].booking_id]

    def test_unknown_period(self, seeded_db):
        with pytest.raises(InvalidInput):
            ledger.list_reservations(seeded_db, at(MONDAY, 9), period="fortnight")

    def test_booking_ids_are_unique(self, seeded_db):
        ids = {ledger.generate_booking_id(seeded_db) for _ in range(50)}

        assert len(ids) == 50
