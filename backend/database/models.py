from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func

from database.database import Base

class ScheduledItemRecord(Base):
    __tablename__ = "scheduled_items"

    id = Column(String(32), primary_key=True, index=True)
    title = Column(String, nullable=False)
    media_ref = Column(String, nullable=False) # Cloud URL or Local Path
    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    duration = Column(Integer, nullable=False) # seconds
    created_at = Column(DateTime(timezone=True), server_default=func.now())
