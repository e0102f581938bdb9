"""
Schemas module - Request/Response schemas for API endpoints.
"""
from placement_portal.schemas.schemas import (
    Actor,
    ApiResponse,
    ApplicationCreate,
    ApplicationResponse,
    ApplicationStatus,
    ApplicationUpdate,
    UserRole,
)

__all__ = [
    "Actor",
    "ApiResponse",
    "ApplicationCreate",
    "ApplicationResponse",
    "ApplicationStatus",
    "ApplicationUpdate",
    "UserRole",
]
