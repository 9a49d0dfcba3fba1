from tablebook.schemas.common import PaginatedResponse, ErrorResponse, MessageResponse, SetupResponse
from tablebook.schemas.user import User, UserCreate, AdminCreate, UserLogin, Token, TokenPayload
from tablebook.schemas.opening_hours import OpeningHours, OpeningHoursEntry, HoursWindow
from tablebook.schemas.table import Table, TableCreate, TableUpdate, TableDetail, TableReservationSummary
from tablebook.schemas.reservation import (
    Reservation, ReservationCreate, ExternalReservationCreate,
    ReservationUpdate, ReservationStatusUpdate,
)
from tablebook.schemas.availability import (
    AdmissionRequest, Admission, TableAvailability, TimeSlotAvailability,
)
