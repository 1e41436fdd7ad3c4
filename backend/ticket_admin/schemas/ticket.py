"""Pydantic schemas for ticket types."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class TicketTypeCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    price: float = Field(gt=0)
    quantity: int = Field(gt=0)
    description: Optional[str] = Field(default=None, max_length=500)


class TicketTypeUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    price: Optional[float] = Field(default=None, gt=0)
    quantity: Optional[int] = Field(default=None, gt=0)
    description: Optional[str] = Field(default=None, max_length=500)


class TicketTypeOut(BaseModel):
    id: str
    event_id: str
    name: str
    description: Optional[str] = None
    price: float
    quantity: int
    quantity_booked: int
    quantity_available: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
