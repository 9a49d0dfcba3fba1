from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tablebook.db.session import get_db
from tablebook.api.deps import get_current_admin_user
from tablebook.models.user import User
from tablebook.schemas.opening_hours import OpeningHours as OpeningHoursSchema, OpeningHoursEntry
from tablebook.scheduling import hours as calendar

router = APIRouter(prefix="/admin/opening-hours", tags=["Admin - Opening Hours"])


@router.put("/", response_model=List[OpeningHoursSchema])
def replace_opening_hours(
    entries: List[OpeningHoursEntry],
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """
    Replace the whole weekly calendar. The body must hold exactly seven
    entries covering days 0 (Sunday) to 6 (Saturday); an open day needs
    `open_time` before `close_time`. Existing reservations are not touched.
    """
    return calendar.replace_all(db, entries)
