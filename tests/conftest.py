import uuid
from datetime import datetime, timedelta

import mongomock
import pytest
from fastapi.testclient import TestClient

from placement_portal.core.auth import create_access_token
from placement_portal.core.config import Settings
from placement_portal.db.mongodb import COLLECTIONS, get_database, init_mongo_indexes
from placement_portal.main import app
from placement_portal.schemas.schemas import Actor, UserRole
from placement_portal.services.application_service import ApplicationService


@pytest.fixture
def db():
    # In-memory MongoDB with the same indexes as production
    client = mongomock.MongoClient()
    database = client["placement_portal_test"]
    init_mongo_indexes(database)
    yield database
    client.close()


@pytest.fixture
def settings():
    return Settings(enforce_eligibility=True, enforce_deadline=True)


@pytest.fixture
def service(db, settings):
    return ApplicationService(db, settings=settings)


@pytest.fixture
def client(db):
    app.dependency_overrides[get_database] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(db, role="student", gpa=8.0, is_placed=False, name="Test User"):
    doc = {
        "name": name,
        "email": f"{uuid.uuid4().hex[:10]}@college.edu",
        "role": role,
        "register_number": uuid.uuid4().hex[:8].upper(),
        "department": "CSE",
    }
    if role == "student":
        doc["gpa"] = gpa
        doc["is_placed"] = is_placed
    return str(db[COLLECTIONS["users"]].insert_one(doc).inserted_id)


def make_company(db, name="Acme", min_gpa=0, deadline_days=30, status="active"):
    doc = {
        "name": name,
        "min_gpa": min_gpa,
        "deadline": datetime.utcnow() + timedelta(days=deadline_days),
        "package": 12.5,
        "location": "Bengaluru",
        "status": status,
    }
    return str(db[COLLECTIONS["companies"]].insert_one(doc).inserted_id)


def student_actor(student_id):
    return Actor(id=student_id, role=UserRole.student)


def officer_actor(officer_id):
    return Actor(id=officer_id, role=UserRole.placement_officer)


def auth_header(user_id, role="student"):
    token = create_access_token({"sub": user_id, "role": role})
    return {"Authorization": f"Bearer {token}"}
