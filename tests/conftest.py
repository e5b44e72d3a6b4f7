import os
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("RATE_LIMITING_ENABLED", "false")
os.environ.setdefault("LOG_DIR", "./test-logs")

from common.config import reset_settings_cache  # noqa: E402

reset_settings_cache()

from common.auth import create_user_token, get_password_hash  # noqa: E402
from common.database import Base, SessionLocal, engine  # noqa: E402
from common.models import Resource, RoleEnum, User  # noqa: E402
from services.bookings.app import app as bookings_app  # noqa: E402
from services.users.app import app as users_app  # noqa: E402


@pytest.fixture(autouse=True, scope="function")
def _create_test_database() -> Generator[None, None, None]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session() -> Generator:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def users_client() -> Generator[TestClient, None, None]:
    with TestClient(users_app) as client:
        yield client


@pytest.fixture()
def bookings_client() -> Generator[TestClient, None, None]:
    with TestClient(bookings_app) as client:
        yield client


@pytest.fixture()
def make_user(db_session) -> Callable[..., User]:
    def factory(email: str, role: RoleEnum = RoleEnum.STUDENT, name: str = "Test User") -> User:
        user = User(name=name, email=email, role=role, hashed_password=get_password_hash("Passw0rd!"))
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return factory


@pytest.fixture()
def make_resource(db_session) -> Callable[..., Resource]:
    def factory(name: str, is_active: bool = True) -> Resource:
        resource = Resource(name=name, description=f"{name} for tests", is_active=is_active)
        db_session.add(resource)
        db_session.commit()
        db_session.refresh(resource)
        return resource

    return factory


@pytest.fixture()
def auth_header() -> Callable[[User], dict[str, str]]:
    def build(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_user_token(user)}"}

    return build
