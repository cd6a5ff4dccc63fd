# tests/conftest.py
import os

# Settings are read at import time, so these must exist before app.* is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ROOM_STATUS_PUSH_INTERVAL_SECONDS", "3600")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db, get_session_factory
from app.main import create_app
from app.models import Room, RoomStatus, RoleName, User
from app.utils.security import hash_password

from helpers import token_for


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def _make_user(db, username: str, role: RoleName, is_active: bool = True) -> User:
    user = User(
        username=username,
        email=f"{username}@university.ac.uk",
        password=hash_password("Password123"),
        firstName=username.capitalize(),
        lastName="Tester",
        role=role,
        isActive=is_active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin(db) -> User:
    return _make_user(db, "admin", RoleName.ADMIN)


@pytest.fixture
def student(db) -> User:
    return _make_user(db, "student", RoleName.STUDENT)


@pytest.fixture
def inactive_user(db) -> User:
    return _make_user(db, "ghost", RoleName.ADMIN, is_active=False)


@pytest.fixture
def admin_token(admin) -> str:
    return token_for(admin)


@pytest.fixture
def student_token(student) -> str:
    return token_for(student)


def _make_room(db, number: str, floor: int, status: RoomStatus = RoomStatus.FREE, **extra) -> Room:
    room = Room(
        roomNumber=number,
        floor=floor,
        building=extra.get("building", "Main Building"),
        type=extra.get("type", "Seminar Room"),
        capacity=extra.get("capacity", 20),
        equipment=extra.get("equipment", "Whiteboard"),
        currentStatus=status,
    )
    db.add(room)
    db.commit()
    db.refresh(room)
    return room


@pytest.fixture
def make_room(db):
    def factory(number: str, floor: int = 1, status: RoomStatus = RoomStatus.FREE, **extra) -> Room:
        return _make_room(db, number, floor, status, **extra)
    return factory


@pytest.fixture
def rooms(make_room) -> dict[str, Room]:
    return {
        "101": make_room("101", 1),
        "102": make_room("102", 1, type="Computer Lab", capacity=25),
        "201": make_room("201", 2, type="Lecture Theatre", capacity=80),
        "301": make_room("301", 3, status=RoomStatus.MAINTENANCE, building="Science Block"),
    }


@pytest.fixture
def app(session_factory):
    application = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_session_factory] = lambda: session_factory
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c

