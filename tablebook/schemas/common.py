from typing import Any, Optional, List, Generic, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


# Paginated response wrapper, used by admin list endpoints
class PaginatedResponse(BaseModel, Generic[T]):
    data: List[T]
    total: int
    page: int
    limit: int
    total_pages: int


# Every scheduling rejection is rendered in this shape
class ErrorResponse(BaseModel):
    error: str
    message: str
    detail: dict[str, Any] = {}


class MessageResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None


class SetupResponse(MessageResponse):
    tables_count: int
    reservations_count: int
    opening_hours_count: int
