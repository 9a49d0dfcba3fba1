import enum
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text, Index, func
from sqlalchemy.orm import relationship
from tablebook.db.session import Base

class ReservationStatus(str, enum.Enum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"

class ReservationSource(str, enum.Enum):
    internal = "internal"
    external = "external"
    embedded_form = "embedded_form"

# Statuses that hold a table for their time span
ACTIVE_STATUSES = (ReservationStatus.pending.value, ReservationStatus.confirmed.value)

class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True)
    booking_id = Column(String(20), unique=True, nullable=False, index=True)
    customer_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    party_size = Column(Integer, nullable=False)
    table_id = Column(Integer, ForeignKey("dining_tables.table_id"), nullable=False, index=True)
    # Naive wall-clock values in the restaurant's timezone
    booking_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)
    duration = Column(Integer, nullable=False, default=120) # minutes
    status = Column(String(20), nullable=False, default=ReservationStatus.pending.value, index=True)
    notes = Column(Text, nullable=True)
    source = Column(String(20), nullable=False, default=ReservationSource.internal.value)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    table = relationship("DiningTable", back_populates="reservations")

    __table_args__ = (
        Index("ix_reservations_table_span", "table_id", "booking_time", "end_time"),
    )
