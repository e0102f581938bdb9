from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import PyMongoError

from placement_portal.api.routes.application_routes import get_application_service
from placement_portal.db.mongodb import COLLECTIONS
from placement_portal.main import app
from tests.conftest import auth_header, make_company, make_user


def _apply(client, student_id, company_id):
    return client.post(
        "/api/applications",
        json={"company_id": company_id, "cover_letter": "Keen to join"},
        headers=auth_header(student_id),
    )


def test_apply_and_list(client, db):
    student = make_user(db, gpa=8)
    company = make_company(db, name="Globex", min_gpa=7)

    response = _apply(client, student, company)
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["status"] == "pending"
    assert body["data"]["company"]["name"] == "Globex"

    response = client.get("/api/applications", headers=auth_header(student))
    assert response.status_code == 200
    assert [a["id"] for a in response.json()["data"]] == [body["data"]["id"]]


def test_duplicate_apply_returns_400(client, db):
    student = make_user(db)
    company = make_company(db)
    assert _apply(client, student, company).status_code == 201

    response = _apply(client, student, company)
    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "You have already applied to this company"}


def test_placed_student_gets_clear_message(client, db):
    student = make_user(db, is_placed=True)

    response = _apply(client, student, make_company(db))
    assert response.status_code == 400
    assert "already placed" in response.json()["message"]


def test_approve_endpoint_runs_cascade(client, db):
    student = make_user(db)
    officer = make_user(db, role="placement_officer")
    x = _apply(client, student, make_company(db, name="X")).json()["data"]["id"]
    y = _apply(client, student, make_company(db, name="Y")).json()["data"]["id"]

    response = client.post(
        f"/api/applications/{x}/approve",
        json={"remarks": "Offer accepted"},
        headers=auth_header(officer, "placement_officer"),
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["changed"] is True
    assert data["rejected_siblings"] == 1
    assert data["application"]["remarks"] == "Offer accepted"

    sibling = client.get(f"/api/applications/{y}", headers=auth_header(student)).json()["data"]
    assert sibling["status"] == "rejected"
    assert db[COLLECTIONS["users"]].find_one({"_id": ObjectId(student)})["is_placed"] is True

    # Second approval is a no-op
    again = client.post(f"/api/applications/{x}/approve", headers=auth_header(officer, "placement_officer"))
    assert again.status_code == 200
    assert again.json()["data"]["changed"] is False


def test_locked_placement_via_put(client, db):
    student = make_user(db)
    officer = make_user(db, role="placement_officer")
    headers = auth_header(officer, "placement_officer")
    x = _apply(client, student, make_company(db)).json()["data"]["id"]

    assert client.put(f"/api/applications/{x}", json={"status": "approved"}, headers=headers).status_code == 200

    response = client.put(f"/api/applications/{x}", json={"status": "rejected"}, headers=headers)
    assert response.status_code == 400
    assert "cannot be changed" in response.json()["message"]


def test_students_cannot_approve(client, db):
    student = make_user(db)
    x = _apply(client, student, make_company(db)).json()["data"]["id"]

    assert client.post(f"/api/applications/{x}/approve", headers=auth_header(student)).status_code == 403
    response = client.put(f"/api/applications/{x}", json={"status": "approved"}, headers=auth_header(student))
    assert response.status_code == 403
    assert response.json()["success"] is False


def test_other_students_application_is_forbidden(client, db):
    owner, other = make_user(db), make_user(db)
    x = _apply(client, owner, make_company(db)).json()["data"]["id"]

    assert client.get(f"/api/applications/{x}", headers=auth_header(other)).status_code == 403
    assert client.delete(f"/api/applications/{x}", headers=auth_header(other)).status_code == 403
    assert client.delete(f"/api/applications/{x}", headers=auth_header(owner)).status_code == 200


def test_not_found(client, db):
    officer = make_user(db, role="placement_officer")
    response = client.get(f"/api/applications/{ObjectId()}", headers=auth_header(officer, "placement_officer"))
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Application not found"}


def test_invalid_payload_is_400(client, db):
    student = make_user(db)
    response = client.post("/api/applications", json={}, headers=auth_header(student))
    assert response.status_code == 400
    assert response.json()["success"] is False

    response = client.put(
        f"/api/applications/{ObjectId()}", json={"status": "hired"}, headers=auth_header(student)
    )
    assert response.status_code == 400


def test_bad_token(client, db):
    response = client.get("/api/applications", headers={"Authorization": "Bearer nonsense"})
    assert response.status_code == 401
    assert response.json()["success"] is False

    ghost = auth_header(str(ObjectId()))
    assert client.get("/api/applications", headers=ghost).status_code == 401


def test_stats(client, db):
    student = make_user(db)
    make_user(db)
    officer = make_user(db, role="placement_officer")
    x = _apply(client, student, make_company(db, name="X")).json()["data"]["id"]
    _apply(client, student, make_company(db, name="Y"))
    make_company(db, name="Draft", status="draft")
    client.post(f"/api/applications/{x}/approve", headers=auth_header(officer, "placement_officer"))

    mine = client.get("/api/stats", headers=auth_header(student)).json()["data"]
    assert mine["total_applications"] == 2
    assert mine["approved_applications"] == 1
    assert mine["rejected_applications"] == 1
    assert mine["active_companies"] == 2
    assert mine["is_placed"] is True

    campus = client.get("/api/stats", headers=auth_header(officer, "placement_officer")).json()["data"]
    assert campus["total_companies"] == 3
    assert campus["total_students"] == 2
    assert campus["placed_students"] == 1
    assert campus["placement_rate"] == 50.0


class _BrokenService:
    def list_applications(self, *args, **kwargs):
        raise PyMongoError("connection refused to mongo-0.internal:27017")


def test_unexpected_error_is_generic_500(client, db):
    student = make_user(db)
    app.dependency_overrides[get_application_service] = lambda: _BrokenService()
    broken_client = TestClient(app, raise_server_exceptions=False)

    response = broken_client.get("/api/applications", headers=auth_header(student))

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Server error. Please try again later."}
