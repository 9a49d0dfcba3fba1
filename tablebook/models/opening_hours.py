from sqlalchemy import Column, Boolean, Integer, Time, DateTime, func
from tablebook.db.session import Base

class OpeningHours(Base):
    __tablename__ = "opening_hours"

    id = Column(Integer, primary_key=True)
    day_of_week = Column(Integer, unique=True, nullable=False, index=True) # 0=Sunday, 6=Saturday
    is_open = Column(Boolean, nullable=False, default=True)
    open_time = Column(Time, nullable=False)
    close_time = Column(Time, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
