from tablebook.models.user import User
from tablebook.models.opening_hours import OpeningHours
from tablebook.models.table import DiningTable, TableStatus
from tablebook.models.reservation import Reservation, ReservationStatus, ReservationSource, ACTIVE_STATUSES
