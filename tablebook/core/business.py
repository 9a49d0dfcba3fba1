from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from zoneinfo import ZoneInfo

from tablebook.core.config import settings


@dataclass(frozen=True)
class BusinessProfile:
    """
    The single restaurant a deployment serves.

    Built from settings at startup and handed to request handlers as a
    dependency. Reservation timestamps are stored as naive wall-clock values
    in ``timezone``; aware values are converted on the way in.
    """

    name: str
    timezone: ZoneInfo
    default_duration: int = 120
    slot_granularity: int = 30

    def now(self) -> datetime:
        return datetime.now(self.timezone).replace(tzinfo=None)

    def to_local(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value
        return value.astimezone(self.timezone).replace(tzinfo=None)


@lru_cache
def get_business() -> BusinessProfile:
    return BusinessProfile(
        name=settings.BUSINESS_NAME,
        timezone=ZoneInfo(settings.BUSINESS_TIMEZONE),
        default_duration=settings.DEFAULT_DURATION_MINUTES,
        slot_granularity=settings.SLOT_GRANULARITY_MINUTES,
    )
