"""
Application Routes

GET /applications - List applications (all for officers, own for students)
GET /applications/{application_id} - Get one application
POST /applications - Apply to a company (student only)
PUT /applications/{application_id} - Update (status: officers; resume/cover letter: owner)
POST /applications/{application_id}/approve - Approve and run the placement cascade (officer only)
DELETE /applications/{application_id} - Delete (owner or officer)

Every response uses the envelope {success, data, message}.
"""

from fastapi import APIRouter, Depends, Query
from pymongo.database import Database
from typing import Optional

from placement_portal.db.mongodb import get_database
from placement_portal.core.auth import get_current_actor, get_current_officer
from placement_portal.services.application_service import ApplicationService
from placement_portal.schemas.schemas import (
    Actor, ApiResponse, ApplicationCreate, ApplicationStatus, ApplicationUpdate, ApprovalRequest
)

router = APIRouter(prefix="/applications", tags=["Applications"])


def get_application_service(db: Database = Depends(get_database)) -> ApplicationService:
    return ApplicationService(db)


@router.get("", response_model=ApiResponse)
async def list_applications(
    status: Optional[ApplicationStatus] = Query(None),
    company_id: Optional[str] = Query(None),
    student_id: Optional[str] = Query(None, description="Officers only; ignored for students"),
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service)
):
    """List applications, newest first."""
    applications = service.list_applications(
        actor, status=status, company_id=company_id, student_id=student_id
    )
    return ApiResponse(data=applications)


@router.get("/{application_id}", response_model=ApiResponse)
async def get_application(
    application_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service)
):
    """Get a single application. Students can only view their own."""
    return ApiResponse(data=service.get_application(application_id, actor))


@router.post("", response_model=ApiResponse, status_code=201)
async def create_application(
    payload: ApplicationCreate,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service)
):
    """
    Apply to a company.

    Fails if the student is already placed, already applied, or does not
    meet the company's GPA requirement.
    """
    application = service.create_application(actor, payload)
    return ApiResponse(data=application, message="Application submitted successfully")


@router.put("/{application_id}", response_model=ApiResponse)
async def update_application(
    application_id: str,
    patch: ApplicationUpdate,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service)
):
    """
    Update an application.

    Setting status to 'approved' places the student and rejects their
    other pending/under_review applications.
    """
    application = service.update_application(application_id, actor, patch)
    return ApiResponse(data=application, message="Application updated")


@router.post("/{application_id}/approve", response_model=ApiResponse)
async def approve_application(
    application_id: str,
    body: Optional[ApprovalRequest] = None,
    officer: Actor = Depends(get_current_officer),
    service: ApplicationService = Depends(get_application_service)
):
    """Approve an application and run the placement cascade."""
    result = service.approve_and_cascade(
        application_id, officer, remarks=body.remarks if body else None
    )
    message = (
        f"Application approved. {result.rejected_siblings} other application(s) rejected."
        if result.changed else "Application was already approved"
    )
    return ApiResponse(data=result, message=message)


@router.delete("/{application_id}", response_model=ApiResponse)
async def delete_application(
    application_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ApplicationService = Depends(get_application_service)
):
    """Delete an application. Owner student or officer only."""
    service.delete_application(application_id, actor)
    return ApiResponse(data={}, message="Application deleted")
