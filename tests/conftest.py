import base64
import os
import sys
import tempfile
from pathlib import Path

# backend/ is the import root; put it on the path FIRST
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

# Settings and the engine are built at import time: configure BEFORE importing the app
_TMP_DIR = tempfile.mkdtemp(prefix="blockvault-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_TMP_DIR, 'test.db').as_posix()}"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["MASTER_ENCRYPTION_KEY"] = base64.b64encode(bytes(range(32))).decode()
os.environ["LOG_DIR"] = str(Path(_TMP_DIR, "log"))

import pytest

from core.security import create_access_token
from core.tenancy import Tenant
from database import Base, SessionLocal, engine
import models.block  # noqa: F401
import models.field  # noqa: F401
from main import app

ACCOUNT_A = "11111111-1111-4111-8111-111111111111"
ACCOUNT_B = "22222222-2222-4222-8222-222222222222"


@pytest.fixture(autouse=True)
def setup_teardown():
    """Fresh schema for every test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    """Session DB for store-level tests"""
    db = SessionLocal()
    yield db
    db.close()


@pytest.fixture
def tenant():
    return Tenant(ACCOUNT_A)


@pytest.fixture
def other_tenant():
    return Tenant(ACCOUNT_B)


@pytest.fixture
def client():
    """FastAPI test client"""
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {create_access_token(ACCOUNT_A)}"}


@pytest.fixture
def other_auth_headers():
    return {"Authorization": f"Bearer {create_access_token(ACCOUNT_B)}"}
