"""
Per-table write serialisation.

A reservation write (insert, move, status change) and a table delete must not
interleave with another write for the same table between the conflict check
and the commit. ``table_lock`` takes an in-process lock per table and a
``SELECT ... FOR UPDATE`` on the table rows, so the guarantee holds both
within one worker process and across processes sharing a PostgreSQL database.
"""
from contextlib import contextmanager
from threading import Lock, RLock
from typing import Dict, Iterator

from sqlalchemy.orm import Session

from tablebook.models.table import DiningTable


class TableLockRegistry:
    def __init__(self):
        self._guard = Lock()
        self._locks: Dict[int, RLock] = {}

    def get(self, table_id: int) -> RLock:
        with self._guard:
            lock = self._locks.get(table_id)
            if lock is None:
                lock = self._locks[table_id] = RLock()
            return lock


table_locks = TableLockRegistry()


@contextmanager
def table_lock(db: Session, *table_ids: int) -> Iterator[Dict[int, DiningTable]]:
    """
    Hold the write locks for ``table_ids`` until the block exits.

    Locks are always taken in ascending table order. The block is expected to
    commit; if it raises, the session is rolled back before the locks are
    released. Yields the locked table rows keyed by table number.
    """
    ids = sorted({table_id for table_id in table_ids if table_id is not None})
    held = [table_locks.get(table_id) for table_id in ids]
    for lock in held:
        lock.acquire()
    try:
        rows = (
            db.query(DiningTable)
            .filter(DiningTable.table_id.in_(ids))
            .order_by(DiningTable.table_id)
            .with_for_update()
            .all()
        )
        yield {row.table_id: row for row in rows}
    except Exception:
        db.rollback()
        raise
    finally:
        for lock in reversed(held):
            lock.release()
