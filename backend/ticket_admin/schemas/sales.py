"""Pydantic schemas for sales analytics and the dashboard."""
from datetime import date
from typing import Optional
from pydantic import BaseModel

from ticket_admin.services.event_lifecycle import EventStatus


class SalesSummary(BaseModel):
    total_events: int
    total_revenue: float
    total_bookings: int
    confirmed_bookings: int
    cancelled_bookings: int
    conversion_rate: float  # confirmed / total, percent


class EventSalesStats(BaseModel):
    event_id: str
    event_title: str
    category: Optional[str] = None
    scheduled_date: Optional[date] = None
    status: EventStatus
    total_bookings: int
    confirmed_bookings: int
    revenue: float
    tickets_available: int
    tickets_sold: int


class SalesReport(BaseModel):
    summary: SalesSummary
    event_stats: list[EventSalesStats] = []


class RecentEvent(BaseModel):
    id: str
    title: str
    status: EventStatus

    model_config = {"from_attributes": True}


class DashboardStats(BaseModel):
    scope: str  # "own" for ADMIN, "all" for SUPER_ADMIN
    total_events: int
    total_users: int
    total_bookings: int
    total_revenue: float
    recent_events: list[RecentEvent] = []
