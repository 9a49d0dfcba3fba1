"""Concurrent writers racing for the same table and time."""

import threading

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from conftest import MONDAY, at
from tablebook.db.base import Base
from tablebook.db.init_db import seed_tables
from tablebook.models.reservation import Reservation
from tablebook.schemas.reservation import ReservationCreate
from tablebook.scheduling import lifecycle
from tablebook.scheduling.errors import NoAvailableTable, SchedulingError, SlotConflict
from tablebook.scheduling.hours import seed_default_hours

WRITERS = 6


@pytest.fixture
def file_sessions(tmp_path):
    """File-backed SQLite so every thread gets its own connection."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    session = factory()
    seed_tables(session)
    seed_default_hours(session)
    session.close()

    yield factory
    engine.dispose()


def race(factory, make_request):
    """Run WRITERS concurrent create_reservation calls; returns (created, errors)."""
    barrier = threading.Barrier(WRITERS)
    created, errors = [], []
    guard = threading.Lock()

    def writer(n):
        session = factory()
        try:
            barrier.wait()
            reservation = lifecycle.create_reservation(
                session, make_request(n), trusted=True, as_of=at(MONDAY, 9)
            )
            with guard:
                created.append(reservation.table_id)
        except SchedulingError as exc:
            with guard:
                errors.append(exc)
        finally:
            session.close()

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(WRITERS)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return created, errors


class TestConcurrentAdmission:
    """At most one writer wins any given slot."""

    def test_same_explicit_table(self, file_sessions):
        created, errors = race(
            file_sessions,
            lambda n: ReservationCreate(
                customer_name=f"Guest {n}", party_size=2, table_id=3, booking_time=at(MONDAY, 19)
            ),
        )

        assert created == [3]
        assert len(errors) == WRITERS - 1
        assert all(isinstance(e, SlotConflict) for e in errors)

    def test_auto_assign_spreads_across_free_tables(self, file_sessions):
        # Parties of 7 or 8 only fit table 5
        created, errors = race(
            file_sessions,
            lambda n: ReservationCreate(
                customer_name=f"Guest {n}", party_size=7, booking_time=at(MONDAY, 19)
            ),
        )

        assert created == [5]
        assert all(isinstance(e, NoAvailableTable) for e in errors)

    def test_no_double_booking_under_contention(self, file_sessions):
        # Each writer takes the smallest table still free when it is admitted
        created, errors = race(
            file_sessions,
            lambda n: ReservationCreate(
                customer_name=f"Guest {n}", party_size=2, booking_time=at(MONDAY, 19)
            ),
        )

        assert errors == []
        assert sorted(created) == [1, 2, 3, 4, 6, 7]

        session = file_sessions()
        try:
            tables = [r.table_id for r in session.query(Reservation).all()]
        finally:
            session.close()
        assert len(tables) == len(set(tables)) == WRITERS
