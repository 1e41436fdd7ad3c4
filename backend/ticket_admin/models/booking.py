"""Booking ORM model: customer purchases, read by sales analytics."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, Integer, Numeric, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ticket_admin.database import Base


class BookingStatus(str, enum.Enum):
    pending = "PENDING"
    confirmed = "CONFIRMED"
    cancelled = "CANCELLED"


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.id"), nullable=False, index=True)
    ticket_type_id = Column(String(36), ForeignKey("ticket_types.id"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    quantity = Column(Integer, nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    booking_status = Column(SAEnum(BookingStatus, native_enum=False), nullable=False, default=BookingStatus.pending)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    event = relationship("Event", back_populates="bookings")
