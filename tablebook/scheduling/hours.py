"""
Opening-hours calendar.

One row per weekday (0 = Sunday … 6 = Saturday). A booking fits the calendar
when the day is open, it starts at or after opening and it ends no later than
closing; ending exactly at closing time is allowed.
"""
import logging
from datetime import datetime, time, timedelta
from typing import Iterable, List

from sqlalchemy.orm import Session

from tablebook.models.opening_hours import OpeningHours
from tablebook.schemas.opening_hours import OpeningHoursEntry
from tablebook.scheduling.errors import NotFound, OutsideOpeningHours, ValidationError

logger = logging.getLogger(__name__)

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
WEEKEND = (0, 6)


def day_of_week(moment: datetime) -> int:
    """Sunday-based weekday index (0 = Sunday … 6 = Saturday)."""
    return moment.isoweekday() % 7


def minutes_of_day(value: time) -> int:
    return value.hour * 60 + value.minute


def default_hours() -> List[OpeningHoursEntry]:
    """Weekdays 12:00–23:00, weekends 11:00–22:00."""
    return [
        OpeningHoursEntry(
            day_of_week=day,
            is_open=True,
            open_time=time(11, 0) if day in WEEKEND else time(12, 0),
            close_time=time(22, 0) if day in WEEKEND else time(23, 0),
        )
        for day in range(7)
    ]


def list_hours(db: Session) -> List[OpeningHours]:
    return db.query(OpeningHours).order_by(OpeningHours.day_of_week).all()


def hours_for(db: Session, day: int) -> OpeningHours:
    hours = db.query(OpeningHours).filter(OpeningHours.day_of_week == day).first()
    if not hours:
        raise NotFound(
            f"Opening hours not configured for {DAY_NAMES[day] if 0 <= day <= 6 else day}",
            {"day_of_week": day},
        )
    return hours


def is_within_hours(hours: OpeningHours, instant: datetime, duration: int) -> bool:
    if not hours.is_open:
        return False
    opens = datetime.combine(instant.date(), hours.open_time)
    closes = datetime.combine(instant.date(), hours.close_time)
    return opens <= instant and instant + timedelta(minutes=duration) <= closes


def check_within_hours(db: Session, instant: datetime, duration: int) -> OpeningHours:
    """Return the day's hours, or raise OutsideOpeningHours with a sub-reason."""
    day = day_of_week(instant)
    hours = hours_for(db, day)
    detail = {
        "day_of_week": day,
        "opening_time": hours.open_time,
        "closing_time": hours.close_time,
        "booking_time": instant,
        "duration": duration,
    }

    if not hours.is_open:
        raise OutsideOpeningHours(
            f"The restaurant is closed on {DAY_NAMES[day]}",
            {**detail, "reason": OutsideOpeningHours.CLOSED},
        )
    if not is_within_hours(hours, instant, duration):
        raise OutsideOpeningHours(
            "Booking time is outside of opening hours or too close to closing time",
            {**detail, "reason": OutsideOpeningHours.OUTSIDE_HOURS},
        )
    return hours


def _validate_week(entries: List[OpeningHoursEntry]) -> None:
    if len(entries) != 7:
        raise ValidationError(
            "Expected exactly 7 opening hours entries, one per day of the week",
            {"received": len(entries)},
        )

    days = [entry.day_of_week for entry in entries]
    if sorted(days) != list(range(7)):
        raise ValidationError(
            "Opening hours must cover every day 0-6 exactly once",
            {"days": days},
        )

    for entry in entries:
        if entry.is_open and entry.open_time >= entry.close_time:
            raise ValidationError(
                f"Opening time must be before closing time on {DAY_NAMES[entry.day_of_week]}",
                {"invalid_entry": entry.model_dump()},
            )


def replace_all(db: Session, entries: Iterable[OpeningHoursEntry]) -> List[OpeningHours]:
    """
    Replace the whole calendar in one transaction.

    Nothing is written unless all seven entries are valid. Existing rows are
    locked first so concurrent replacements are applied one after the other.
    """
    entries = list(entries)
    _validate_week(entries)

    existing = {
        row.day_of_week: row
        for row in db.query(OpeningHours).with_for_update().all()
    }
    for entry in entries:
        row = existing.get(entry.day_of_week)
        if row is None:
            row = OpeningHours(day_of_week=entry.day_of_week)
            db.add(row)
        row.is_open = entry.is_open
        row.open_time = entry.open_time
        row.close_time = entry.close_time

    db.commit()
    logger.info("Opening hours replaced for all 7 days.")
    return list_hours(db)


def seed_default_hours(db: Session) -> List[OpeningHours]:
    """Create the default calendar if no hours exist yet; no-op otherwise."""
    if db.query(OpeningHours.id).first() is not None:
        return list_hours(db)

    for entry in default_hours():
        db.add(OpeningHours(**entry.model_dump()))
    db.commit()
    logger.info("Created default opening hours for all days of the week.")
    return list_hours(db)
