"""
Shared fixtures for the reconciliation tests.

Every test gets its own in-memory SQLite database.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from decimal import Decimal
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app.models import Agent, Customer, Trip


@pytest.fixture()
def db():
    """Session bound to a fresh in-memory database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture()
def client(db):
    """API client whose requests share the test session."""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def make_trip(db):
    def _make(trip_name="Macau Spring Trip"):
        trip = Trip(trip_name=trip_name)
        db.add(trip)
        db.commit()
        db.refresh(trip)
        return trip
    return _make


@pytest.fixture()
def make_agent(db):
    def _make(name="Agent Kim", commission_rate="10"):
        agent = Agent(name=name, email=f"{name.split()[-1].lower()}@example.com",
                      commission_rate=Decimal(commission_rate))
        db.add(agent)
        db.commit()
        db.refresh(agent)
        return agent
    return _make


@pytest.fixture()
def make_customer(db):
    def _make(name="Customer Lee", agent=None):
        customer = Customer(name=name, agent_id=agent.id if agent else None)
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer
    return _make
