from typing import Optional
from datetime import date, datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from tablebook.core.business import BusinessProfile, get_business
from tablebook.db.session import get_db
from tablebook.api.deps import get_current_admin_user
from tablebook.models.user import User
from tablebook.models.reservation import ReservationSource, ReservationStatus
from tablebook.schemas.common import PaginatedResponse
from tablebook.schemas.reservation import (
    Reservation as ReservationSchema,
    ReservationCreate,
    ReservationStatusUpdate,
    ReservationUpdate,
)
from tablebook.scheduling import ledger, lifecycle

router = APIRouter(prefix="/admin/reservations", tags=["Admin - Reservations"])


# ---------------------------------------------------------------------------
# GET /admin/reservations: filtered listing
# ---------------------------------------------------------------------------


@router.get("/", response_model=PaginatedResponse[ReservationSchema])
def list_reservations(
    # --- Filters ---
    status: Optional[ReservationStatus] = Query(None, description="Filter by status (pending, confirmed, cancelled)"),
    on_date: Optional[date] = Query(None, alias="date", description="Bookings starting on this day (YYYY-MM-DD)"),
    period: Optional[str] = Query(None, description="today, future, past, week, month or upcoming"),
    start_date: Optional[datetime] = Query(None, description="Range start (used with end_date)"),
    end_date: Optional[datetime] = Query(None, description="Range end (used with start_date)"),
    # --- Pagination ---
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    business: BusinessProfile = Depends(get_business),
    current_user: User = Depends(get_current_admin_user),
):
    """Reservations ordered by start time, earliest first."""
    total, reservations = ledger.list_reservations(
        db,
        business.now(),
        status=status.value if status else None,
        on_date=on_date,
        period=period,
        start=business.to_local(start_date) if start_date else None,
        end=business.to_local(end_date) if end_date else None,
        page=page,
        limit=limit,
    )

    return PaginatedResponse(
        data=[ReservationSchema.model_validate(r) for r in reservations],
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


# ---------------------------------------------------------------------------
# POST /admin/reservations: staff booking
# ---------------------------------------------------------------------------


@router.post("/", response_model=ReservationSchema, status_code=status.HTTP_201_CREATED)
def create_reservation(
    data: ReservationCreate,
    db: Session = Depends(get_db),
    business: BusinessProfile = Depends(get_business),
    current_user: User = Depends(get_current_admin_user),
):
    """
    Create a reservation on behalf of a guest.

    - Pass `table_id` to book a specific table, or omit it to auto-assign the
      smallest free table that seats the party.
    - Staff may create the reservation directly as `confirmed`; the default is
      `pending`.
    """
    return lifecycle.create_reservation(
        db,
        data,
        source=ReservationSource.internal,
        trusted=True,
        as_of=business.now(),
    )


# ---------------------------------------------------------------------------
# GET / PATCH / DELETE /admin/reservations/{booking_id}
# ---------------------------------------------------------------------------


@router.get("/{booking_id}", response_model=ReservationSchema)
def get_reservation(
    booking_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    return ledger.get_reservation(db, booking_id)


@router.patch("/{booking_id}", response_model=ReservationSchema)
def update_reservation(
    booking_id: str,
    data: ReservationUpdate,
    db: Session = Depends(get_db),
    business: BusinessProfile = Depends(get_business),
    current_user: User = Depends(get_current_admin_user),
):
    """
    Edit a reservation.

    Changes to table, time, duration or party size are re-admitted exactly
    like a new booking (the reservation never conflicts with itself). A
    `status` change follows the normal lifecycle rules; re-sending the
    current status is accepted. The edit is applied as a whole or not at all.
    """
    lifecycle.update_reservation(
        db,
        booking_id,
        schedule=data.schedule_fields(),
        status=data.status,
        details=data.detail_fields(),
        as_of=business.now(),
    )
    return ledger.get_reservation(db, booking_id)


@router.patch("/{booking_id}/status", response_model=ReservationSchema)
def update_reservation_status(
    booking_id: str,
    data: ReservationStatusUpdate,
    db: Session = Depends(get_db),
    business: BusinessProfile = Depends(get_business),
    current_user: User = Depends(get_current_admin_user),
):
    """pending → confirmed, pending → cancelled or confirmed → cancelled."""
    return lifecycle.set_status(db, booking_id, data.status, as_of=business.now())


@router.delete("/{booking_id}", response_model=ReservationSchema)
def cancel_reservation(
    booking_id: str,
    db: Session = Depends(get_db),
    business: BusinessProfile = Depends(get_business),
    current_user: User = Depends(get_current_admin_user),
):
    """Cancel the reservation. The record stays in the ledger."""
    return lifecycle.cancel_reservation(db, booking_id, as_of=business.now())
