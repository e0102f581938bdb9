"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
"""

from pydantic import BaseModel, Field
from typing import Optional, Any
from datetime import datetime
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    student = "student"
    placement_officer = "placement_officer"
    admin = "admin"


class ApplicationStatus(str, Enum):
    pending = "pending"
    under_review = "under_review"
    approved = "approved"
    rejected = "rejected"


# Statuses the approval cascade moves to rejected
IN_FLIGHT_STATUSES = (ApplicationStatus.pending, ApplicationStatus.under_review)


class CompanyStatus(str, Enum):
    active = "active"
    closed = "closed"
    draft = "draft"


# ============================================================
# ACTOR (already authenticated caller)
# ============================================================

class Actor(BaseModel):
    id: str
    role: UserRole

    @property
    def is_officer(self) -> bool:
        """Placement officers and admins have the same powers here."""
        return self.role in (UserRole.placement_officer, UserRole.admin)

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.student


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ApplicationCreate(BaseModel):
    company_id: str = Field(..., min_length=1)
    resume_url: Optional[str] = None
    cover_letter: Optional[str] = Field(None, max_length=5000)


class ApplicationUpdate(BaseModel):
    """Partial update. Only fields that are set are applied."""
    status: Optional[ApplicationStatus] = None
    remarks: Optional[str] = Field(None, max_length=2000)
    resume_url: Optional[str] = None
    cover_letter: Optional[str] = Field(None, max_length=5000)


class ApprovalRequest(BaseModel):
    remarks: Optional[str] = Field(None, max_length=2000)


class StudentSummary(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    register_number: Optional[str] = None
    department: Optional[str] = None
    is_placed: bool = False


class CompanySummary(BaseModel):
    id: str
    name: Optional[str] = None
    package: Optional[float] = None
    location: Optional[str] = None
    deadline: Optional[datetime] = None


class ApplicationResponse(BaseModel):
    id: str
    student_id: str
    company_id: str
    status: ApplicationStatus
    applied_date: datetime
    remarks: Optional[str] = None
    resume_url: Optional[str] = None
    cover_letter: Optional[str] = None
    student: Optional[StudentSummary] = None
    company: Optional[CompanySummary] = None
    updated_at: Optional[datetime] = None


class TransitionResponse(BaseModel):
    application: ApplicationResponse
    previous_status: ApplicationStatus
    changed: bool
    placed: bool
    rejected_siblings: int = 0


# ============================================================
# STATS SCHEMAS
# ============================================================

class StudentStatsResponse(BaseModel):
    total_applications: int
    pending_applications: int
    under_review_applications: int
    approved_applications: int
    rejected_applications: int
    active_companies: int
    is_placed: bool


class OfficerStatsResponse(BaseModel):
    total_companies: int
    active_companies: int
    total_students: int
    placed_students: int
    total_applications: int
    pending_applications: int
    approved_applications: int
    placement_rate: float


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class ApiResponse(BaseModel):
    """Envelope used by every endpoint."""
    success: bool = True
    data: Optional[Any] = None
    message: Optional[str] = None
