from fastapi import APIRouter

# Auth
from tablebook.api.v1.public.auth import router as auth_router

# Public: availability, opening hours, booking widget
from tablebook.api.v1.public.availability import (
    router as availability_router,
    hours_router,
    reservation_router,
)

# Admin
from tablebook.api.v1.admin.reservations import router as admin_reservations_router
from tablebook.api.v1.admin.tables import router as admin_tables_router
from tablebook.api.v1.admin.opening_hours import router as admin_hours_router
from tablebook.api.v1.admin.setup import router as admin_setup_router

api_router = APIRouter()

# --- Auth ---
api_router.include_router(auth_router)

# --- Public ---
api_router.include_router(availability_router)
api_router.include_router(hours_router)
api_router.include_router(reservation_router)

# --- Admin ---
api_router.include_router(admin_reservations_router)
api_router.include_router(admin_tables_router)
api_router.include_router(admin_hours_router)
api_router.include_router(admin_setup_router)
