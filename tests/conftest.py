# tests/conftest.py
# Окружение задаётся до импорта приложения: settings читаются при импорте.
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-testing-only-do-not-use-in-production")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from campus_teranga.db.base import Base  # noqa: E402
from campus_teranga.db.session import SessionLocal, engine  # noqa: E402
from campus_teranga.main import app  # noqa: E402
from campus_teranga.models.user import RoleEnum  # noqa: E402

from factories import DEFAULT_PASSWORD, auth_headers, make_user  # noqa: E402


@pytest.fixture(autouse=True)
def tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    # Без with: lifespan не запускается, таблицы создаёт фикстура tables
    return TestClient(app)


@pytest.fixture
def password():
    return DEFAULT_PASSWORD


@pytest.fixture
def user(db):
    return make_user(db, full_name="Awa Ndiaye", phone_number="+221700000010")


@pytest.fixture
def admin(db):
    return make_user(db, full_name="Moussa Diop", phone_number="+221700000020", role=RoleEnum.admin)


@pytest.fixture
def super_admin(db):
    return make_user(db, full_name="Fatou Sall", phone_number="+221700000030", role=RoleEnum.super_admin)


@pytest.fixture
def user_headers(user):
    return auth_headers(user)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def super_admin_headers(super_admin):
    return auth_headers(super_admin)
