"""Event ORM model: lifecycle-bearing entity."""
import uuid
from sqlalchemy import (
    Column, String, Text, Date, DateTime, Integer, Boolean, ForeignKey, Table, Enum as SAEnum,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ticket_admin.database import Base
from ticket_admin.services.event_lifecycle import EventStatus, INITIAL_STATUS


event_subcategories = Table(
    "event_subcategories",
    Base.metadata,
    Column("event_id", String(36), ForeignKey("events.id", ondelete="CASCADE"), primary_key=True),
    Column("subcategory_id", String(36), ForeignKey("subcategories.id", ondelete="CASCADE"), primary_key=True),
)


class Event(Base):
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    cover_image = Column(String(500), nullable=True)
    profile_image = Column(String(500), nullable=True)
    location = Column(String(200), nullable=False)
    scheduled_date = Column(Date, nullable=True)
    scheduled_time = Column(String(5), nullable=False, default="18:00")
    duration_minutes = Column(Integer, nullable=True)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=False)
    owner_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_by_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    status = Column(SAEnum(EventStatus, native_enum=False), nullable=False, default=INITIAL_STATUS)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    approver_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    category = relationship("Category")
    subcategories = relationship("SubCategory", secondary=event_subcategories, order_by="SubCategory.name")
    ticket_types = relationship(
        "TicketType", back_populates="event", cascade="all, delete-orphan", order_by="TicketType.created_at"
    )
    bookings = relationship("Booking", back_populates="event")
    status_changes = relationship(
        "EventStatusChange", back_populates="event", order_by="EventStatusChange.created_at"
    )
