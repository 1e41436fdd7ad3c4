"""Pytest fixtures: throwaway SQLite database for fast, isolated tests."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from ticket_admin.database import Base, get_db
from ticket_admin.main import app
from ticket_admin.models.category import Category
from ticket_admin.models.permission import Permission, UserPermission
from ticket_admin.models.user import User
from ticket_admin.security import create_access_token, hash_password, load_user
from ticket_admin.services.authorization import Role

SQLITE_URL = "sqlite:///./test.db"
DEFAULT_PASSWORD = "password123"


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session bound to the test engine."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_engine):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def super_admin(db):
    return create_test_user(db, "root@example.com", role=Role.super_admin, name="Root")


@pytest.fixture
def super_admin_headers(super_admin):
    return auth_headers(super_admin)


@pytest.fixture
def category(db, super_admin):
    return create_test_category(db, super_admin, "Music")


# ---------------------------------------------------------------------------
# Helpers: seed rows directly and build bearer headers
# ---------------------------------------------------------------------------
def get_or_create_permission(db, name: str) -> Permission:
    permission = db.query(Permission).filter(Permission.name == name).first()
    if permission is None:
        permission = Permission(name=name, description=f"Allows {name.lower()}")
        db.add(permission)
        db.commit()
        db.refresh(permission)
    return permission


def create_test_user(
    db,
    email: str,
    role: Role = Role.admin,
    permissions: tuple = (),
    name: str = "Test User",
    password: str = DEFAULT_PASSWORD,
    promoted_by_id: str = None,
    is_active: bool = True,
) -> User:
    """Insert a user with the given role and grants, return it fully loaded."""
    user = User(
        email=email,
        name=name,
        password_hash=hash_password(password),
        role=role,
        promoted_by_id=promoted_by_id,
        is_active=is_active,
    )
    db.add(user)
    db.commit()
    for permission_name in permissions:
        permission = get_or_create_permission(db, permission_name)
        db.add(UserPermission(user_id=user.id, permission_id=permission.id))
    db.commit()
    db.expire_all()
    return load_user(db, user.id)


def create_test_category(db, creator: User, name: str = "Music") -> Category:
    category = Category(name=name, description=f"{name} events", created_by_id=creator.id)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


def event_payload(category_id: str, title: str = "Summer Concert", **overrides) -> dict:
    payload = {
        "title": title,
        "description": "An evening of live music under the stars.",
        "category_id": category_id,
        "location": "Central Park",
        "scheduled_time": "19:30",
        "duration_minutes": 120,
    }
    payload.update(overrides)
    return payload
