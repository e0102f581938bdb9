"""
Placement State Machine - application status lifecycle.

STATES:
    pending -> under_review -> approved | rejected

Officers may move an application freely between pending, under_review and
rejected. approved is terminal once the student is placed.

APPROVAL CASCADE (approve_and_cascade):
1. Pre-check: student already placed through another application ->
   PlacementLockedError. Placed through this one means an earlier approval
   stopped after step 2, so steps 3 and 4 are resumed.
2. Linchpin: users.is_placed false -> true (conditional update).
   If another approval got there first we stop with ConcurrencyConflictError
   and nothing has been written.
3. Application status -> approved (conditional). If the application
   disappeared in the meantime the linchpin is released.
4. Every other pending/under_review application of the student -> rejected.

Step 4 runs after the linchpin, so a crash between 3 and 4 can leave stale
siblings behind. Approving the same application again re-runs step 4 only,
which is why the cascade is safe to repeat.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from pymongo.database import Database
from pymongo.errors import PyMongoError

from placement_portal.core.errors import (
    CascadeFailedError,
    ConcurrencyConflictError,
    NotFoundError,
    PlacementLockedError,
    UnauthorizedError,
)
from placement_portal.schemas.schemas import Actor, ApplicationStatus
from placement_portal.services.application_store import ApplicationStore
from placement_portal.services.mongo_service import UserService

logger = logging.getLogger(__name__)


@dataclass
class TransitionResult:
    application: dict
    previous_status: ApplicationStatus
    status: ApplicationStatus
    changed: bool
    placed: bool = False
    rejected_siblings: int = 0


class PlacementStateMachine:
    """
    Owns every status change of an application and the side effects of
    approval. Route handlers never write `status` directly.
    """

    def __init__(self, db: Database = None,
                 store: ApplicationStore = None,
                 students: UserService = None):
        self.store = store or ApplicationStore(db)
        self.students = students or UserService(db)

    def transition(self, application: dict, requested_status: ApplicationStatus,
                   actor: Actor, remarks: str = None) -> TransitionResult:
        """
        Move `application` to `requested_status` on behalf of `actor`.

        Raises:
            UnauthorizedError: actor is not an officer/admin
            PlacementLockedError: the student is placed and the change
                would alter one of their applications' status
            ConcurrencyConflictError: a concurrent approval placed the student
            NotFoundError: the application vanished mid-operation
        """
        if not actor.is_officer:
            raise UnauthorizedError("Only placement officers can change application status")

        requested = ApplicationStatus(requested_status)
        current = ApplicationStatus(application["status"])

        if requested == ApplicationStatus.approved:
            if current == ApplicationStatus.approved:
                return self._rerun_cascade(application, remarks)
            return self.approve_and_cascade(application, remarks)

        if requested != current and self.students.is_placed(application["student_id"]):
            # Covers the approved record itself and its already-rejected siblings
            raise PlacementLockedError()

        updated = self.store.update_status(application["_id"], requested, remarks)
        if requested != current:
            logger.info(
                "Application %s: %s -> %s by %s",
                application["_id"], current.value, requested.value, actor.id
            )
        return TransitionResult(
            application=updated,
            previous_status=current,
            status=requested,
            changed=requested != current
        )

    def approve_and_cascade(self, application: dict, remarks: str = None) -> TransitionResult:
        """
        Approve `application`, place its student and reject the student's
        other in-flight applications, as one logical unit.
        """
        app_id = application["_id"]
        student_id = application["student_id"]
        previous = ApplicationStatus(application["status"])

        if self.students.is_placed(student_id):
            if self.students.placed_application_id(student_id) != app_id:
                raise PlacementLockedError("Student is already placed in another company. Status cannot be changed.")
            # An earlier approval of this application stopped after the linchpin
            logger.warning("Resuming interrupted approval of %s for student %s", app_id, student_id)
        elif not self.students.mark_placed(student_id, app_id):  # linchpin
            logger.warning(
                "Approval of %s lost the placement race for student %s", app_id, student_id
            )
            raise ConcurrencyConflictError()

        try:
            approved = self.store.approve(app_id, remarks)
        except PyMongoError:
            self.students.release_placement(student_id, app_id)
            raise
        if approved is None:
            self.students.release_placement(student_id, app_id)
            raise NotFoundError("Application not found")

        try:
            rejected = self.store.bulk_reject_siblings(student_id, app_id)
        except PyMongoError:
            logger.exception(
                "Sibling rejection failed after placing student %s via %s", student_id, app_id
            )
            raise CascadeFailedError()

        logger.info(
            "Application %s approved; student %s placed; %d sibling(s) rejected",
            app_id, student_id, rejected
        )
        return TransitionResult(
            application=approved,
            previous_status=previous,
            status=ApplicationStatus.approved,
            changed=True,
            placed=True,
            rejected_siblings=rejected
        )

    def _rerun_cascade(self, application: dict, remarks: Optional[str]) -> TransitionResult:
        """Approving an approved application: only finish stale sibling rejections."""
        app_id = application["_id"]
        rejected = self.store.bulk_reject_siblings(application["student_id"], app_id)
        if rejected:
            logger.info("Re-run of cascade for %s rejected %d stale sibling(s)", app_id, rejected)
        updated = application
        if remarks is not None:
            updated = self.store.update_fields(app_id, {"remarks": remarks})
        return TransitionResult(
            application=updated,
            previous_status=ApplicationStatus.approved,
            status=ApplicationStatus.approved,
            changed=False,
            placed=True,
            rejected_siblings=rejected
        )
