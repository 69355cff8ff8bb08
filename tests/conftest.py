"""Pytest fixtures for testing"""

import os

# Point the audit store at SQLite before the app's engine is created
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from datetime import date
from typing import Any, Dict, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from underwriting_gateway.api.main import create_app
from underwriting_gateway.api.dependencies import load_policy
from underwriting_gateway.domain.policy import UnderwritingPolicy
from underwriting_gateway.infrastructure.database.models import Base
from underwriting_gateway.infrastructure.database.session import get_db
from factories import REFERENCE_DATE, make_record


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def policy() -> UnderwritingPolicy:
    """Default underwriting policy from settings"""
    return load_policy()


@pytest.fixture
def reference_date() -> date:
    return REFERENCE_DATE


@pytest.fixture
def clean_record() -> Dict[str, Any]:
    """Matching identity, no adverse records, fresh report"""
    return make_record()
