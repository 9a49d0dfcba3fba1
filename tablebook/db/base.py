
from tablebook.db.session import Base
from tablebook.models.user import User
from tablebook.models.opening_hours import OpeningHours
from tablebook.models.table import DiningTable
from tablebook.models.reservation import Reservation
