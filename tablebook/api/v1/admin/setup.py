from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from tablebook.core.business import BusinessProfile, get_business
from tablebook.db.session import get_db
from tablebook.db import init_db
from tablebook.api.deps import get_current_admin_user
from tablebook.models.user import User
from tablebook.schemas.common import SetupResponse

router = APIRouter(prefix="/admin", tags=["Admin - Setup"])


@router.post("/init", response_model=SetupResponse)
def initialize_database(
    preserve_reservations: bool = Query(False, description="Keep existing reservations"),
    db: Session = Depends(get_db),
    business: BusinessProfile = Depends(get_business),
    current_user: User = Depends(get_current_admin_user),
):
    """Seed missing tables and opening hours, optionally clearing reservations."""
    counts = init_db.initialize(db, business.now(), preserve_reservations=preserve_reservations)
    return SetupResponse(message="Database initialized", **counts)


@router.post("/seed", response_model=SetupResponse)
def seed_database(
    db: Session = Depends(get_db),
    business: BusinessProfile = Depends(get_business),
    current_user: User = Depends(get_current_admin_user),
):
    """Reset to the default floor plan and load sample bookings. Destroys existing data."""
    counts = init_db.seed_demo(db, business.now())
    return SetupResponse(message="Database seeded with sample data", **counts)
