"""
Error taxonomy for the application engine.

Every expected outcome is a PlacementError subclass carrying the HTTP
status and a user-facing message. Services raise them, the exception
handler in main.py turns them into the response envelope:

    {"success": false, "message": "..."}
"""


class PlacementError(Exception):
    """Base class for all expected, user-facing failures."""

    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(PlacementError):
    status_code = 404
    default_message = "Not found"


class ForbiddenError(PlacementError):
    """Actor does not own the record."""
    status_code = 403
    default_message = "Not authorized"


class UnauthorizedError(PlacementError):
    """Actor's role is not allowed to perform the action."""
    status_code = 403
    default_message = "Your role is not allowed to perform this action"


class ValidationError(PlacementError):
    status_code = 400
    default_message = "Invalid request"


class DuplicateApplicationError(PlacementError):
    status_code = 400
    default_message = "You have already applied to this company"


class AlreadyPlacedError(PlacementError):
    status_code = 400
    default_message = "You are already placed and cannot apply to other companies"


class IneligibleApplicantError(PlacementError):
    status_code = 400
    default_message = "Your GPA does not meet this company's minimum requirement"


class PlacementLockedError(PlacementError):
    status_code = 400
    default_message = "Student is already placed. Approved placement cannot be changed."


class CascadeFailedError(PlacementError):
    """Student was placed but sibling rejection did not finish. Approving again completes it."""
    status_code = 500
    default_message = "Approval could not be completed. Please retry the approval."


class ConcurrencyConflictError(PlacementError):
    """Another approval for the same student won the race."""
    status_code = 409
    default_message = "Student was placed by a concurrent approval. Refresh and try again."
