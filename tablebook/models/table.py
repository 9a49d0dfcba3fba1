import enum
from sqlalchemy import Column, String, Integer, DateTime, func
from sqlalchemy.orm import relationship
from tablebook.db.session import Base

class TableStatus(str, enum.Enum):
    available = "available"
    reserved = "reserved"
    occupied = "occupied"

class DiningTable(Base):
    __tablename__ = "dining_tables"

    id = Column(Integer, primary_key=True)
    table_id = Column(Integer, unique=True, nullable=False, index=True) # number shown to staff
    capacity = Column(Integer, nullable=False)
    location = Column(String(100), nullable=False)
    # Cached projection of the reservation ledger, see scheduling.catalog.recompute_status
    status = Column(String(20), nullable=False, default=TableStatus.available.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    reservations = relationship("Reservation", back_populates="table")
