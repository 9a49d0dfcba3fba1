import logging
from datetime import datetime, timedelta

import psycopg2
from psycopg2.extensions import ISOLATION_LEVEL_AUTOCOMMIT
from sqlalchemy.orm import Session

from tablebook.core.config import settings
from tablebook.models.opening_hours import OpeningHours
from tablebook.models.reservation import Reservation
from tablebook.models.table import DiningTable, TableStatus
from tablebook.scheduling.catalog import recompute_all
from tablebook.scheduling.hours import seed_default_hours
from tablebook.scheduling.ledger import generate_booking_id

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_TABLES = [
    {"table_id": 1, "capacity": 2, "location": "Window"},
    {"table_id": 2, "capacity": 4, "location": "Center"},
    {"table_id": 3, "capacity": 4, "location": "Window"},
    {"table_id": 4, "capacity": 6, "location": "Corner"},
    {"table_id": 5, "capacity": 8, "location": "Private Room"},
    {"table_id": 6, "capacity": 2, "location": "Bar"},
    {"table_id": 7, "capacity": 4, "location": "Patio"},
    {"table_id": 8, "capacity": 6, "location": "Garden"},
]

# (day offset, table, name, party, hh, mm, minutes, notes, status)
DEMO_RESERVATIONS = [
    (0, 3, "John Doe", 4, 19, 0, 120, "Window seat preferred", "confirmed"),
    (0, 1, "Jane Smith", 2, 18, 30, 90, "Anniversary celebration", "confirmed"),
    (0, 5, "Robert Johnson", 6, 20, 0, 150, "Birthday party", "pending"),
    (0, 2, "Emily Davis", 3, 19, 30, 120, "Allergic to nuts", "confirmed"),
    (0, 4, "Michael Wilson", 5, 18, 0, 120, "", "cancelled"),
    (1, 6, "Sarah Brown", 2, 18, 0, 90, "Quiet area preferred", "confirmed"),
    (1, 7, "David Miller", 4, 19, 0, 120, "", "confirmed"),
    (1, 8, "Jennifer Taylor", 6, 20, 0, 150, "Business dinner", "pending"),
]


def create_database():
    """Create the PostgreSQL database if it doesn't exist."""
    if not settings.DATABASE_URL.startswith("postgresql"):
        return
    try:
        # Connect to default 'postgres' database to check/create target DB
        con = psycopg2.connect(
            user=settings.POSTGRES_USER,
            password=settings.POSTGRES_PASSWORD,
            host=settings.POSTGRES_SERVER,
            port=settings.POSTGRES_PORT,
            dbname="postgres"
        )
        con.set_isolation_level(ISOLATION_LEVEL_AUTOCOMMIT)
        cur = con.cursor()

        cur.execute("SELECT 1 FROM pg_catalog.pg_database WHERE datname = %s", (settings.POSTGRES_DB,))
        exists = cur.fetchone()

        if not exists:
            logger.info("Database %s does not exist. Creating...", settings.POSTGRES_DB)
            cur.execute(f'CREATE DATABASE "{settings.POSTGRES_DB}"')
            logger.info("Database %s created successfully.", settings.POSTGRES_DB)
        else:
            logger.info("Database %s already exists.", settings.POSTGRES_DB)

        cur.close()
        con.close()
    except psycopg2.Error as e:
        logger.error("Error creating database: %s", e)
        # Proceeding anyway, maybe it exists or connection params are for the target DB directly


def seed_tables(db: Session) -> int:
    """Create the default floor plan when no tables exist; returns how many were created."""
    if db.query(DiningTable.id).first() is not None:
        return 0
    for table in DEFAULT_TABLES:
        db.add(DiningTable(status=TableStatus.available.value, **table))
    db.commit()
    logger.info("Created %d tables.", len(DEFAULT_TABLES))
    return len(DEFAULT_TABLES)


def initialize(db: Session, now: datetime, preserve_reservations: bool = False) -> dict:
    """
    Bring the database to a usable state.

    Missing tables and opening hours are seeded with defaults. Unless
    ``preserve_reservations`` is set, existing reservations are cleared.
    Every table's status is recomputed from whatever reservations remain.
    """
    logger.info("Initializing database with preserve_reservations=%s", preserve_reservations)

    seed_tables(db)
    seed_default_hours(db)

    if not preserve_reservations:
        cleared = db.query(Reservation).delete(synchronize_session="fetch")
        logger.info("Cleared %d existing reservations.", cleared)

    changed = recompute_all(db, now)
    db.commit()
    logger.info("Recomputed table statuses (%d changed).", changed)

    return {
        "tables_count": db.query(DiningTable).count(),
        "reservations_count": db.query(Reservation).count(),
        "opening_hours_count": db.query(OpeningHours).count(),
    }


def seed_demo(db: Session, now: datetime) -> dict:
    """Wipe everything and load the default floor plan, hours and a day of demo bookings."""
    db.query(Reservation).delete(synchronize_session="fetch")
    db.query(DiningTable).delete(synchronize_session="fetch")
    db.query(OpeningHours).delete(synchronize_session="fetch")
    db.commit()

    seed_tables(db)
    seed_default_hours(db)

    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    for offset, table_id, name, party, hh, mm, minutes, notes, status in DEMO_RESERVATIONS:
        start = today + timedelta(days=offset, hours=hh, minutes=mm)
        db.add(Reservation(
            booking_id=generate_booking_id(db),
            customer_name=name,
            party_size=party,
            table_id=table_id,
            booking_time=start,
            end_time=start + timedelta(minutes=minutes),
            duration=minutes,
            notes=notes,
            status=status,
            source="internal",
        ))
        # generate_booking_id checks uniqueness against flushed rows
        db.flush()

    recompute_all(db, now)
    db.commit()
    logger.info("Seeded demo data with %d reservations.", len(DEMO_RESERVATIONS))

    return {
        "tables_count": db.query(DiningTable).count(),
        "reservations_count": db.query(Reservation).count(),
        "opening_hours_count": db.query(OpeningHours).count(),
    }


if __name__ == "__main__":
    create_database()
