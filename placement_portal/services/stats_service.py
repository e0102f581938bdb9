"""
Placement Stats - dashboard counters.

Students get their own application breakdown; officers get the
campus-wide placement picture.
"""

from pymongo.database import Database

from placement_portal.schemas.schemas import (
    Actor,
    ApplicationStatus,
    OfficerStatsResponse,
    StudentStatsResponse,
)
from placement_portal.services.application_store import ApplicationStore
from placement_portal.services.mongo_service import CompanyService, UserService, to_object_id


class StatsService:

    def __init__(self, db: Database = None):
        self.store = ApplicationStore(db)
        self.students = UserService(db)
        self.companies = CompanyService(db)

    def for_actor(self, actor: Actor):
        if actor.is_student:
            return self.student_stats(actor.id)
        return self.officer_stats()

    def student_stats(self, student_id: str) -> StudentStatsResponse:
        counts = self.store.count_by_status({"student_id": to_object_id(student_id)})
        return StudentStatsResponse(
            total_applications=sum(counts.values()),
            pending_applications=counts[ApplicationStatus.pending.value],
            under_review_applications=counts[ApplicationStatus.under_review.value],
            approved_applications=counts[ApplicationStatus.approved.value],
            rejected_applications=counts[ApplicationStatus.rejected.value],
            active_companies=self.companies.count_companies(active_only=True),
            is_placed=self.students.is_placed(student_id)
        )

    def officer_stats(self) -> OfficerStatsResponse:
        counts = self.store.count_by_status()
        total_students = self.students.count_students()
        placed_students = self.students.count_students(placed_only=True)

        # Percentage, two decimals
        placement_rate = 0.0
        if total_students > 0:
            placement_rate = round(placed_students / total_students * 100, 2)

        return OfficerStatsResponse(
            total_companies=self.companies.count_companies(),
            active_companies=self.companies.count_companies(active_only=True),
            total_students=total_students,
            placed_students=placed_students,
            total_applications=sum(counts.values()),
            pending_applications=counts[ApplicationStatus.pending.value],
            approved_applications=counts[ApplicationStatus.approved.value],
            placement_rate=placement_rate
        )
