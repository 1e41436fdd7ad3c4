"""FastAPI application entry point."""
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from ticket_admin.config import settings
from ticket_admin.database import Base, engine
from ticket_admin.exception_handlers import register_exception_handlers

# Import routers
from ticket_admin.routers import admin_users, auth, categories, events, permissions, sales, tickets

# Import all models so Base.metadata knows about them
from ticket_admin.models.user import User                                  # noqa: F401
from ticket_admin.models.permission import Permission, UserPermission      # noqa: F401
from ticket_admin.models.category import Category, SubCategory             # noqa: F401
from ticket_admin.models.event import Event                                # noqa: F401
from ticket_admin.models.event_status_change import EventStatusChange      # noqa: F401
from ticket_admin.models.ticket import TicketType                          # noqa: F401
from ticket_admin.models.booking import Booking                            # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Ticket Admin",
    description="Back-office for the ticket booking platform: admins, permissions, categories, events and sales",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Register routers
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(admin_users.router, prefix="/api/admin", tags=["Admin Users"])
app.include_router(permissions.router, prefix="/api/admin/permissions", tags=["Permissions"])
app.include_router(categories.router, prefix="/api/admin/categories", tags=["Categories"])
app.include_router(events.router, prefix="/api/admin/events", tags=["Events"])
app.include_router(tickets.router, prefix="/api/admin/events/{event_id}/tickets", tags=["Tickets"])
app.include_router(sales.router, prefix="/api/admin", tags=["Sales"])


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
        logger.info("Created SQLite tables for %s", settings.DATABASE_URL)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
