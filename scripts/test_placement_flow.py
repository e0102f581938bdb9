#!/usr/bin/env python3
"""
Placement Flow Test Script

Walks through the four placement scenarios against a live MongoDB,
using a throwaway database so real data is never touched.
Run: python scripts/test_placement_flow.py
"""
import sys
sys.path.insert(0, '.')

import uuid
from datetime import datetime, timedelta

from placement_portal.core.errors import (
    AlreadyPlacedError,
    DuplicateApplicationError,
    PlacementLockedError,
)
from placement_portal.db.mongodb import get_mongo_client, init_mongo_indexes, test_mongo_connection, COLLECTIONS
from placement_portal.schemas.schemas import Actor, ApplicationCreate, ApplicationUpdate, UserRole
from placement_portal.services.application_service import ApplicationService


def create_user(db, name, role="student", gpa=None):
    doc = {"name": name, "email": f"{uuid.uuid4().hex[:8]}@college.edu", "role": role}
    if role == "student":
        doc.update({"gpa": gpa, "is_placed": False})
    return str(db[COLLECTIONS["users"]].insert_one(doc).inserted_id)


def create_company(db, name, min_gpa):
    return str(db[COLLECTIONS["companies"]].insert_one({
        "name": name,
        "min_gpa": min_gpa,
        "deadline": datetime.utcnow() + timedelta(days=14),
        "status": "active"
    }).inserted_id)


def scenario_approval_cascade(db, service, officer):
    """Student A (gpa 8) applies to X (min 7) and Y (min 7.5); X is approved."""
    print("\n[1] Approval cascade...")

    a = Actor(id=create_user(db, "Student A", gpa=8), role=UserRole.student)
    x = create_company(db, "Company X", 7)
    y = create_company(db, "Company Y", 7.5)

    app_x = service.create_application(a, ApplicationCreate(company_id=x))
    app_y = service.create_application(a, ApplicationCreate(company_id=y))
    print(f"    ✅ Applied: X={app_x.status.value}, Y={app_y.status.value}")

    result = service.approve_and_cascade(app_x.id, officer)
    app_y = service.get_application(app_y.id, officer)
    print(f"    ✅ X approved, student placed: {result.application.student.is_placed}")
    print(f"    ✅ Y automatically: {app_y.status.value} ({result.rejected_siblings} rejected)")
    return a, app_x


def scenario_placed_cannot_apply(db, service, student):
    print("\n[2] Placed student applies again...")
    z = create_company(db, "Company Z", 0)
    try:
        service.create_application(student, ApplicationCreate(company_id=z))
        print("    ❌ Application was accepted")
    except AlreadyPlacedError as e:
        print(f"    ✅ Rejected: {e.message}")


def scenario_duplicate(db, service):
    print("\n[3] Duplicate application...")
    b = Actor(id=create_user(db, "Student B", gpa=9), role=UserRole.student)
    x = create_company(db, "Company X2", 0)

    service.create_application(b, ApplicationCreate(company_id=x))
    try:
        service.create_application(b, ApplicationCreate(company_id=x))
        print("    ❌ Duplicate was accepted")
    except DuplicateApplicationError as e:
        print(f"    ✅ Rejected: {e.message}")
    print(f"    ✅ Records for B: {len(service.list_applications(b))}")


def scenario_locked(service, officer, approved_app):
    print("\n[4] Officer tries to reject an approved placement...")
    try:
        service.update_application(approved_app.id, officer, ApplicationUpdate(status="rejected"))
        print("    ❌ Placement was changed")
    except PlacementLockedError as e:
        print(f"    ✅ Rejected: {e.message}")
    status = service.get_application(approved_app.id, officer).status.value
    print(f"    ✅ Status still: {status}")


def main():
    print("=" * 50)
    print("PLACEMENT PORTAL - PLACEMENT FLOW TEST")
    print("=" * 50)

    if not test_mongo_connection():
        print("\n❌ MongoDB not reachable. Check MONGODB_URI in .env")
        return

    db_name = f"placement_flow_{uuid.uuid4().hex[:6]}"
    client = get_mongo_client()
    db = client[db_name]
    init_mongo_indexes(db)

    try:
        service = ApplicationService(db)
        officer = Actor(id=create_user(db, "Officer", role="placement_officer"), role=UserRole.placement_officer)

        student_a, app_x = scenario_approval_cascade(db, service, officer)
        scenario_placed_cannot_apply(db, service, student_a)
        scenario_duplicate(db, service)
        scenario_locked(service, officer, app_x)
    finally:
        client.drop_database(db_name)
        print(f"\n🧹 Dropped test database {db_name}")

    print("\n" + "=" * 50)
    print("Placement flow test complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
