from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from tablebook.db.session import get_db
from tablebook.api.deps import get_current_admin_user
from tablebook.models.user import User
from tablebook.models.table import TableStatus
from tablebook.schemas.common import MessageResponse
from tablebook.schemas.table import (
    Table as TableSchema,
    TableCreate,
    TableDetail,
    TableReservationSummary,
    TableUpdate,
)
from tablebook.scheduling import catalog

router = APIRouter(prefix="/admin/tables", tags=["Admin - Tables"])


@router.get("/", response_model=List[TableSchema])
def list_tables(
    status: Optional[TableStatus] = Query(None, description="Filter by status (available, reserved, occupied)"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    return catalog.list_tables(db, status)


@router.post("/", response_model=TableSchema, status_code=status.HTTP_201_CREATED)
def create_table(
    data: TableCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    return catalog.create_table(db, data.table_id, data.capacity, data.location, data.status)


@router.get("/{table_id}", response_model=TableDetail)
def get_table(
    table_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """A table with its pending and confirmed reservations, earliest first."""
    table = catalog.get_table(db, table_id)
    return TableDetail(
        **TableSchema.model_validate(table).model_dump(),
        reservations=[
            TableReservationSummary.model_validate(r)
            for r in catalog.active_reservations(db, table_id)
        ],
    )


@router.patch("/{table_id}", response_model=TableSchema)
def update_table(
    table_id: int,
    data: TableUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    return catalog.update_table(db, table_id, data.model_dump(exclude_unset=True))


@router.delete("/{table_id}", response_model=MessageResponse)
def delete_table(
    table_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Rejected with 409 while the table has any pending or confirmed booking."""
    catalog.delete_table(db, table_id)
    return MessageResponse(message=f"Table {table_id} deleted")
