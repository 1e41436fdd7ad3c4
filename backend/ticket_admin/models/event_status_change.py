"""EventStatusChange ORM model: append-only status history."""
import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ticket_admin.database import Base
from ticket_admin.services.event_lifecycle import EventStatus


class EventStatusChange(Base):
    __tablename__ = "event_status_changes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False, index=True)
    actor_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    from_status = Column(SAEnum(EventStatus, native_enum=False), nullable=True)
    to_status = Column(SAEnum(EventStatus, native_enum=False), nullable=False)
    reason = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    event = relationship("Event", back_populates="status_changes")
