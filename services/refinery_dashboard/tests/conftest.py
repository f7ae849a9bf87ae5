from pathlib import Path
import os
import sys

ROOT = Path(__file__).resolve().parents[3]
SVC_DIR = ROOT / "services" / "refinery_dashboard"
if str(SVC_DIR) not in sys.path:
    sys.path.insert(0, str(SVC_DIR))

# must be set before config.py is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient

from config import settings
from database import Base, SessionLocal, engine
from main import app
from models import Profile, UserRole


@pytest.fixture()
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db, monkeypatch):
    monkeypatch.setattr(settings, "AUTH_ENABLED", True)
    with TestClient(app) as c:
        yield c


def _add_user(db, user_id, first_name, grants):
    db.add(Profile(id=user_id, first_name=first_name, last_name="Test", email=f"{user_id}@refinery.test"))
    for role, module in grants:
        db.add(UserRole(user_id=user_id, role=role, module=module))


@pytest.fixture()
def users(db):
    """
    Header sets for the seeded callers:
    admin, supervisor, water operator, viewer and a profile with no role.
    """
    _add_user(db, "u-admin", "Ada", [("admin", None)])
    _add_user(db, "u-supervisor", "Sam", [("supervisor", None)])
    _add_user(db, "u-water-op", "Omar", [("operator", "water_treatment")])
    _add_user(db, "u-viewer", "Vera", [("viewer", None)])
    _add_user(db, "u-norole", "Nora", [])
    db.commit()
    return {
        "admin": {"X-User-Id": "u-admin"},
        "supervisor": {"X-User-Id": "u-supervisor"},
        "water_operator": {"X-User-Id": "u-water-op"},
        "viewer": {"X-User-Id": "u-viewer"},
        "norole": {"X-User-Id": "u-norole"},
    }
