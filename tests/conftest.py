import os

# Must be set before the application modules read their configuration
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_database.db")
os.environ.setdefault("ENVIRONMENT", "dev")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.main import app
from app.database import Base
from app.dependencies import get_db
from app.models import Customer, Studio
from app.auth.jwt_handler import create_access_token
from app.auth.permissions import UserRole
from app.services.customer_lock import CustomerLockRegistry
from app.services.session_ledger import SessionLedgerService

DATABASE_URL = os.environ["DATABASE_URL"]

# Tracks the first test so the database file is removed only once
_first_test = True


@pytest.fixture(scope="function")
def db_session():
    """
    One database session shared by the whole test; tables are recreated per test.
    """
    global _first_test

    if _first_test and os.path.exists("test_database.db"):
        os.remove("test_database.db")
        _first_test = False

    engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    """
    FastAPI test client whose `get_db` dependency yields the test session.
    """
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def auth_headers():
    """
    Admin headers through the dev token.
    """
    return {"Authorization": "Bearer dev_token"}


@pytest.fixture
def test_studio(db_session):
    studio = Studio(name="Body Balance Studio")
    db_session.add(studio)
    db_session.commit()
    db_session.refresh(studio)
    return studio


@pytest.fixture
def other_studio(db_session):
    studio = Studio(name="Downtown Studio")
    db_session.add(studio)
    db_session.commit()
    db_session.refresh(studio)
    return studio


@pytest.fixture
def test_customer(db_session, test_studio):
    customer = Customer(
        studio_id=test_studio.id,
        first_name="Sanne",
        last_name="de Vries",
        email="sanne@example.com",
        phone="0612345678",
    )
    db_session.add(customer)
    db_session.commit()
    db_session.refresh(customer)
    return customer


@pytest.fixture
def second_customer(db_session, test_studio):
    customer = Customer(
        studio_id=test_studio.id,
        first_name="Lotte",
        last_name="Jansen",
        email="lotte@example.com",
    )
    db_session.add(customer)
    db_session.commit()
    db_session.refresh(customer)
    return customer


@pytest.fixture
def owner_headers(test_studio):
    """
    Studio owner of the test studio.
    """
    token = create_access_token({
        "sub": "owner@example.com",
        "id": 10,
        "role": UserRole.STUDIO_OWNER.value,
        "studio_id": test_studio.id,
    })
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def foreign_owner_headers(other_studio):
    """
    Studio owner of another studio.
    """
    token = create_access_token({
        "sub": "other.owner@example.com",
        "id": 11,
        "role": UserRole.STUDIO_OWNER.value,
        "studio_id": other_studio.id,
    })
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer_headers(test_customer):
    token = create_access_token({
        "sub": test_customer.email,
        "id": test_customer.id,
        "role": UserRole.CUSTOMER.value,
        "studio_id": test_customer.studio_id,
    })
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def ledger(db_session):
    """
    Ledger service on the test session with its own lock registry.
    """
    return SessionLedgerService(db_session, locks=CustomerLockRegistry(timeout=1))


from tests.fixtures.session_block_fixtures import (  # noqa: E402
    queued_blocks,
    active_block,
)
