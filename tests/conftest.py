import os
import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session, create_engine
from sqlalchemy.pool import StaticPool

# keep the app's own engine away from the working directory
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test_secret")

from gadget_stock.main import app  # noqa: E402
from gadget_stock.db import get_session  # noqa: E402
from gadget_stock.models import Gadget, User  # noqa: E402
from gadget_stock.schemas import Role, Subject  # noqa: E402
from gadget_stock.security import hash_password  # noqa: E402

ADMIN_EMAIL = "admin@stockmgmt.com"
USER_EMAIL = "user@stockmgmt.com"
OTHER_EMAIL = "other@stockmgmt.com"
PASSWORD = "secret123"


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session(engine):
    with Session(engine) as session:
        yield session


def _add_user(session: Session, email: str, name: str, role: Role) -> User:
    user = User(email=email, name=name, password_hash=hash_password(PASSWORD), role=role.value)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture()
def admin(session) -> User:
    return _add_user(session, ADMIN_EMAIL, "Admin User", Role.ADMIN)


@pytest.fixture()
def user(session) -> User:
    return _add_user(session, USER_EMAIL, "Regular User", Role.USER)


@pytest.fixture()
def other(session) -> User:
    return _add_user(session, OTHER_EMAIL, "Other User", Role.USER)


def as_subject(u: User) -> Subject:
    return Subject(id=u.id, email=u.email, role=Role(u.role))


@pytest.fixture()
def make_gadget(session):
    def _make(quantity: int = 5, status: str = "AVAILABLE", name: str = "MacBook Pro") -> Gadget:
        gadget = Gadget(name=name, quantity=quantity, status=status, category="Laptop")
        session.add(gadget)
        session.commit()
        session.refresh(gadget)
        return gadget

    return _make


@pytest.fixture()
def client(engine, admin, user, other):
    def override_get_session():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


def login(client, email: str, password: str = PASSWORD) -> dict:
    r = client.post("/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['token']}"}


@pytest.fixture()
def admin_h(client):
    return login(client, ADMIN_EMAIL)


@pytest.fixture()
def user_h(client):
    return login(client, USER_EMAIL)


@pytest.fixture()
def other_h(client):
    return login(client, OTHER_EMAIL)
