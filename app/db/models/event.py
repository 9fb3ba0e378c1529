from sqlalchemy import Column, Integer, String, Text, DateTime, Float, JSON, ForeignKey, func, Index
from sqlalchemy.orm import relationship
from app.db.session import Base

class Event(Base):
    __tablename__ = "events"
    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    total_guests = Column(Integer, nullable=False)
    category = Column(String(100), nullable=False)
    location = Column(String(255), nullable=True)
    price = Column(Float, nullable=True)
    images = Column(JSON, nullable=False, default=list)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Owner summary is part of every event response
    user = relationship("User", lazy="joined")

    # Indexes for frequently queried fields
    __table_args__ = (
        Index('idx_event_start_date', 'start_date'),
        Index('idx_event_end_date', 'end_date'),
        Index('idx_event_owner', 'user_id'),
        Index('idx_event_category', 'category'),
        Index('idx_event_created_at', 'created_at'),
    )
