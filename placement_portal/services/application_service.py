"""
Application Service - the boundary the HTTP layer calls.

Composes:
- eligibility.is_eligible      (create)
- ApplicationStore             (persistence)
- PlacementStateMachine        (every status change)
- UserService / CompanyService (read model + is_placed)

Authorization rules:
- Students see, edit and delete only their own applications, and may only
  touch resume_url / cover_letter.
- Placement officers and admins see everything and own the status field.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from pymongo.database import Database

from placement_portal.core.config import Settings, get_settings
from placement_portal.core.errors import (
    AlreadyPlacedError,
    DuplicateApplicationError,
    ForbiddenError,
    IneligibleApplicantError,
    NotFoundError,
    PlacementLockedError,
    UnauthorizedError,
    ValidationError,
)
from placement_portal.schemas.schemas import (
    Actor,
    ApplicationCreate,
    ApplicationResponse,
    ApplicationStatus,
    ApplicationUpdate,
    CompanyStatus,
    CompanySummary,
    StudentSummary,
    TransitionResponse,
)
from placement_portal.services.application_store import ApplicationStore, EDITABLE_FIELDS
from placement_portal.services.eligibility import is_eligible
from placement_portal.services.mongo_service import CompanyService, UserService, to_object_id
from placement_portal.services.placement_state_machine import PlacementStateMachine, TransitionResult

logger = logging.getLogger(__name__)

STUDENT_EDITABLE_FIELDS = ("resume_url", "cover_letter")


def _as_naive_utc(value: datetime) -> datetime:
    """pymongo hands back naive UTC datetimes; normalise aware ones to match."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class ApplicationService:

    def __init__(self, db: Database = None, settings: Settings = None):
        self.settings = settings or get_settings()
        self.store = ApplicationStore(db)
        self.students = UserService(db)
        self.companies = CompanyService(db)
        self.state_machine = PlacementStateMachine(store=self.store, students=self.students)

    # ============================================================
    # QUERIES
    # ============================================================

    def list_applications(self, actor: Actor, status: ApplicationStatus = None,
                          company_id: str = None, student_id: str = None) -> List[ApplicationResponse]:
        """
        Officers see all applications (optionally filtered); students only
        ever see their own, whatever filters they send.
        """
        filters = {}
        if actor.is_student:
            filters["student_id"] = to_object_id(actor.id)
        elif student_id:
            filters["student_id"] = to_object_id(student_id)
        if company_id:
            filters["company_id"] = to_object_id(company_id)
        if status:
            filters["status"] = ApplicationStatus(status).value

        if any(value is None for value in filters.values()):
            # A malformed id can't match anything
            return []
        return self._to_responses(self.store.list_all(filters))

    def get_application(self, application_id: str, actor: Actor) -> ApplicationResponse:
        application = self._load_for(application_id, actor)
        return self._to_responses([application])[0]

    # ============================================================
    # COMMANDS
    # ============================================================

    def create_application(self, actor: Actor, payload: ApplicationCreate) -> ApplicationResponse:
        """
        Submit an application for the acting student.

        Checks, in order: already placed, company exists, duplicate,
        GPA eligibility, company open / deadline.
        """
        if not actor.is_student:
            raise UnauthorizedError("Only students can apply to companies")

        student = self.students.get_by_id(actor.id)
        if student is None:
            raise NotFoundError("Student not found")
        if student.get("is_placed"):
            raise AlreadyPlacedError()

        company = self.companies.get_by_id(payload.company_id)
        if company is None:
            raise NotFoundError("Company not found")

        if self.store.find_by_student_company(student["_id"], company["_id"]):
            raise DuplicateApplicationError()

        if self.settings.enforce_eligibility and not is_eligible(student.get("gpa"), company.get("min_gpa")):
            raise IneligibleApplicantError(
                f"Minimum GPA of {company.get('min_gpa')} required, your GPA is {student.get('gpa') or 0}"
            )

        if self.settings.enforce_deadline:
            self._check_open(company)

        application = self.store.create({
            "student_id": student["_id"],
            "company_id": company["_id"],
            "resume_url": payload.resume_url or student.get("resume_url"),
            "cover_letter": payload.cover_letter,
        })

        # An approval may have placed the student between our check and the insert
        if self.students.is_placed(student["_id"]):
            self.store.delete(application["_id"])
            raise AlreadyPlacedError()

        logger.info(
            "Student %s applied to company %s (application %s)",
            student["_id"], company["_id"], application["_id"]
        )
        return self._to_responses([application])[0]

    def update_application(self, application_id: str, actor: Actor,
                           patch: ApplicationUpdate) -> ApplicationResponse:
        """
        Apply a partial update. A status in the patch goes through the
        state machine; everything else is a plain field write.
        """
        application = self._load_for(application_id, actor)
        fields = patch.model_dump(exclude_unset=True)
        status = fields.pop("status", None)

        if actor.is_student:
            if status is not None:
                raise UnauthorizedError("Students cannot change application status")
            not_allowed = set(fields) - set(STUDENT_EDITABLE_FIELDS)
            if not_allowed:
                raise UnauthorizedError(f"Students cannot update: {', '.join(sorted(not_allowed))}")

        if status is None and not fields:
            raise ValidationError("No fields to update")

        if status is not None:
            result = self.state_machine.transition(
                application, status, actor, remarks=fields.pop("remarks", None)
            )
            application = result.application

        fields = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
        if fields:
            application = self.store.update_fields(application["_id"], fields)

        return self._to_responses([application])[0]

    def approve_and_cascade(self, application_id: str, actor: Actor,
                            remarks: str = None) -> TransitionResponse:
        """
        Approve one application: place the student and reject their other
        pending/under_review applications. Approving an already approved
        application only finishes any stale sibling rejections.
        """
        application = self._load_for(application_id, actor)
        result = self.state_machine.transition(
            application, ApplicationStatus.approved, actor, remarks=remarks
        )
        return self._to_transition_response(result)

    def delete_application(self, application_id: str, actor: Actor) -> None:
        application = self._load_for(application_id, actor)
        if application["status"] == ApplicationStatus.approved.value:
            raise PlacementLockedError("An approved placement cannot be deleted")
        self.store.delete(application["_id"])
        logger.info("Application %s deleted by %s", application["_id"], actor.id)

    # ============================================================
    # HELPERS
    # ============================================================

    def _load_for(self, application_id: str, actor: Actor) -> dict:
        """Fetch an application the actor is allowed to see."""
        application = self.store.find_by_id(application_id)
        if application is None:
            raise NotFoundError("Application not found")
        if actor.is_student and str(application["student_id"]) != actor.id:
            raise ForbiddenError()
        return application

    def _check_open(self, company: dict) -> None:
        status = company.get("status", CompanyStatus.active.value)
        if status != CompanyStatus.active.value:
            raise ValidationError("This company is not accepting applications")
        deadline = company.get("deadline")
        if deadline is not None and _as_naive_utc(deadline) < datetime.utcnow():
            raise ValidationError("The application deadline for this company has passed")

    def _to_responses(self, applications: List[dict]) -> List[ApplicationResponse]:
        """Attach student and company summaries (one query per collection)."""
        students = self.students.get_many(a["student_id"] for a in applications)
        companies = self.companies.get_many(a["company_id"] for a in applications)
        return [
            ApplicationResponse(
                id=str(a["_id"]),
                student_id=str(a["student_id"]),
                company_id=str(a["company_id"]),
                status=a["status"],
                applied_date=a["applied_date"],
                remarks=a.get("remarks"),
                resume_url=a.get("resume_url"),
                cover_letter=a.get("cover_letter"),
                student=_student_summary(students.get(a["student_id"])),
                company=_company_summary(companies.get(a["company_id"])),
                updated_at=a.get("updated_at")
            ) for a in applications
        ]

    def _to_transition_response(self, result: TransitionResult) -> TransitionResponse:
        return TransitionResponse(
            application=self._to_responses([result.application])[0],
            previous_status=result.previous_status,
            changed=result.changed,
            placed=result.placed,
            rejected_siblings=result.rejected_siblings
        )


def _student_summary(doc: Optional[dict]) -> Optional[StudentSummary]:
    if doc is None:
        return None
    return StudentSummary(
        id=str(doc["_id"]), name=doc.get("name"), email=doc.get("email"),
        register_number=doc.get("register_number"), department=doc.get("department"),
        is_placed=bool(doc.get("is_placed"))
    )


def _company_summary(doc: Optional[dict]) -> Optional[CompanySummary]:
    if doc is None:
        return None
    return CompanySummary(
        id=str(doc["_id"]), name=doc.get("name"), package=doc.get("package"),
        location=doc.get("location"), deadline=doc.get("deadline")
    )
