"""Pydantic schemas for Events."""
from __future__ import annotations
import re
from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field, ValidationInfo, field_validator

from ticket_admin.schemas.category import SubCategoryBrief
from ticket_admin.schemas.ticket import TicketTypeOut
from ticket_admin.services.event_lifecycle import EventStatus

TIME_PATTERN = re.compile(r"^\d{2}:\d{2}$")


def _check_image(value: Optional[str]) -> Optional[str]:
    if value and not value.startswith("http"):
        raise ValueError("Image must be a valid URL or empty")
    return value or None


def _check_time(value: Optional[str]) -> Optional[str]:
    if value and not TIME_PATTERN.match(value):
        raise ValueError("Event time must be in HH:MM format")
    return value or None


def _check_required(value, info: ValidationInfo):
    """Partial updates may omit a required column but never null it."""
    if value is None:
        raise ValueError(f"{info.field_name} cannot be null")
    return value


class EventCreate(BaseModel):
    title: str = Field(min_length=3, max_length=200)
    description: str = Field(min_length=10, max_length=3000)
    cover_image: Optional[str] = None
    profile_image: Optional[str] = None
    category_id: str
    subcategory_ids: list[str] = []
    location: str = Field(min_length=3, max_length=200)
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0)

    @field_validator("cover_image", "profile_image")
    @classmethod
    def image_is_url(cls, value: Optional[str]) -> Optional[str]:
        return _check_image(value)

    @field_validator("scheduled_time")
    @classmethod
    def time_format(cls, value: Optional[str]) -> Optional[str]:
        return _check_time(value)

    @field_validator("scheduled_date")
    @classmethod
    def date_in_future(cls, value: Optional[date]) -> Optional[date]:
        if value is not None and value <= date.today():
            raise ValueError("Event date must be in the future")
        return value


class EventUpdate(BaseModel):
    """Partial update. Status changes go through the status route."""

    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, min_length=10, max_length=3000)
    cover_image: Optional[str] = None
    profile_image: Optional[str] = None
    category_id: Optional[str] = None
    subcategory_ids: Optional[list[str]] = None
    location: Optional[str] = Field(default=None, min_length=3, max_length=200)
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[str] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0)
    version: Optional[int] = None  # optimistic lock, checked when given

    @field_validator("cover_image", "profile_image")
    @classmethod
    def image_is_url(cls, value: Optional[str]) -> Optional[str]:
        return _check_image(value)

    @field_validator("scheduled_time")
    @classmethod
    def time_format(cls, value: Optional[str]) -> Optional[str]:
        return _check_time(value)

    # Runs after time_format, which turns "" into None.
    @field_validator("title", "description", "location", "scheduled_time", "category_id")
    @classmethod
    def not_null(cls, value: Optional[str], info: ValidationInfo) -> str:
        return _check_required(value, info)


class EventStatusUpdate(BaseModel):
    status: EventStatus
    reason: Optional[str] = Field(default=None, max_length=500)
    version: Optional[int] = None


class BulkDeleteRequest(BaseModel):
    event_ids: list[str] = Field(min_length=1)


class BulkDeleteOut(BaseModel):
    deleted_count: int


class CategoryBrief(BaseModel):
    id: str
    name: str

    model_config = {"from_attributes": True}


class EventOut(BaseModel):
    id: str
    title: str
    description: str
    cover_image: Optional[str] = None
    profile_image: Optional[str] = None
    location: str
    scheduled_date: Optional[date] = None
    scheduled_time: str
    duration_minutes: Optional[int] = None
    category_id: str
    category: Optional[CategoryBrief] = None
    subcategories: list[SubCategoryBrief] = []
    owner_id: Optional[str] = None
    updated_by_id: Optional[str] = None
    status: EventStatus
    approved_at: Optional[datetime] = None
    approver_id: Optional[str] = None
    is_active: bool
    version: int
    created_at: datetime
    updated_at: datetime
    ticket_types: list[TicketTypeOut] = []

    model_config = {"from_attributes": True}


class StatusChangeOut(BaseModel):
    id: str
    event_id: str
    actor_id: Optional[str] = None
    from_status: Optional[EventStatus] = None
    to_status: EventStatus
    reason: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


EventOut.model_rebuild()
