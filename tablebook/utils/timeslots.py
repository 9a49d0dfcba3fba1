from datetime import datetime

from sqlalchemy.orm import Session

from tablebook.scheduling.catalog import recompute_all


def refresh_table_statuses(db: Session, now: datetime) -> int:
    """
    Recompute every table's cached status as of ``now``.

    Table status depends on the clock as well as on the ledger: a reserved
    table becomes occupied when its booking starts and available again when
    the booking ends, without any reservation write in between.

    Returns the number of tables whose status changed.
    """
    count = recompute_all(db, now)
    db.commit()
    return count
