"""
Application Store - persistence for the applications collection.

Document shape:
{
    "_id": ObjectId,
    "student_id": ObjectId,      # users._id
    "company_id": ObjectId,      # companies._id
    "status": "pending" | "under_review" | "approved" | "rejected",
    "applied_date": datetime,    # set once at insert
    "remarks": str | None,       # officer notes
    "resume_url": str | None,
    "cover_letter": str | None,
    "created_at": datetime,
    "updated_at": datetime
}

The unique (student_id, company_id) index created by init_mongo_indexes()
is what rejects duplicates; the find-before-insert in the service is only
there to give a friendly error on the common path.
"""

import logging
from datetime import datetime
from typing import Optional, List, Dict, Any
from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from placement_portal.core.errors import DuplicateApplicationError, NotFoundError
from placement_portal.db.mongodb import get_collection, COLLECTIONS
from placement_portal.schemas.schemas import ApplicationStatus, IN_FLIGHT_STATUSES
from placement_portal.services.mongo_service import to_object_id

logger = logging.getLogger(__name__)

# Fields that may be patched outside the state machine
EDITABLE_FIELDS = ("remarks", "resume_url", "cover_letter")


class ApplicationStore:
    """
    CRUD over the applications collection plus the cascade bulk update.
    Methods return raw documents (ObjectIds intact).
    """

    def __init__(self, db: Database = None):
        self.collection: Collection = get_collection(COLLECTIONS["applications"], db)

    # ---------------- reads ----------------

    def find_by_id(self, application_id) -> Optional[dict]:
        oid = to_object_id(application_id)
        if oid is None:
            return None
        return self.collection.find_one({"_id": oid})

    def find_by_student_company(self, student_id, company_id) -> Optional[dict]:
        sid, cid = to_object_id(student_id), to_object_id(company_id)
        if sid is None or cid is None:
            return None
        return self.collection.find_one({"student_id": sid, "company_id": cid})

    def list_by_student(self, student_id) -> List[dict]:
        sid = to_object_id(student_id)
        if sid is None:
            return []
        return self.list_all({"student_id": sid})

    def list_all(self, filters: Dict[str, Any] = None) -> List[dict]:
        """All applications matching `filters`, newest first."""
        cursor = self.collection.find(filters or {}).sort("applied_date", DESCENDING)
        return list(cursor)

    def count_by_status(self, filters: Dict[str, Any] = None) -> Dict[str, int]:
        """{status: count} for every status, zero-filled."""
        counts = {status.value: 0 for status in ApplicationStatus}
        for doc in self.collection.find(filters or {}, {"status": 1}):
            if doc.get("status") in counts:
                counts[doc["status"]] += 1
        return counts

    # ---------------- writes ----------------

    def create(self, application: dict) -> dict:
        """
        Insert a new application. Status always starts as pending.

        Raises:
            DuplicateApplicationError: the (student, company) pair exists
        """
        now = datetime.utcnow()
        doc = {
            "student_id": application["student_id"],
            "company_id": application["company_id"],
            "status": ApplicationStatus.pending.value,
            "applied_date": now,
            "remarks": application.get("remarks"),
            "resume_url": application.get("resume_url"),
            "cover_letter": application.get("cover_letter"),
            "created_at": now,
            "updated_at": now
        }
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError:
            logger.info(
                "Duplicate application blocked by index: student=%s company=%s",
                doc["student_id"], doc["company_id"]
            )
            raise DuplicateApplicationError()
        doc["_id"] = result.inserted_id
        return doc

    def update_status(self, application_id, new_status: ApplicationStatus,
                      remarks: str = None) -> dict:
        """Plain status write (no side effects). Raises NotFoundError."""
        changes = {"status": ApplicationStatus(new_status).value}
        if remarks is not None:
            changes["remarks"] = remarks
        return self.update_fields(application_id, changes)

    def update_fields(self, application_id, fields: Dict[str, Any]) -> dict:
        """Set arbitrary fields and bump updated_at. Raises NotFoundError."""
        oid = to_object_id(application_id)
        doc = None
        if oid is not None:
            doc = self.collection.find_one_and_update(
                {"_id": oid},
                {"$set": {**fields, "updated_at": datetime.utcnow()}},
                return_document=ReturnDocument.AFTER
            )
        if doc is None:
            raise NotFoundError("Application not found")
        return doc

    def approve(self, application_id: ObjectId, remarks: str = None) -> Optional[dict]:
        """
        Conditional write to approved. Returns the updated document, or
        None if the application is gone or was already approved.
        """
        changes = {"status": ApplicationStatus.approved.value, "updated_at": datetime.utcnow()}
        if remarks is not None:
            changes["remarks"] = remarks
        return self.collection.find_one_and_update(
            {"_id": application_id, "status": {"$ne": ApplicationStatus.approved.value}},
            {"$set": changes},
            return_document=ReturnDocument.AFTER
        )

    def bulk_reject_siblings(self, student_id: ObjectId, exclude_application_id: ObjectId) -> int:
        """
        Reject every other pending/under_review application of the student.
        Approved and rejected siblings are left alone, so re-running is a no-op.
        """
        result = self.collection.update_many(
            {
                "student_id": student_id,
                "_id": {"$ne": exclude_application_id},
                "status": {"$in": [s.value for s in IN_FLIGHT_STATUSES]}
            },
            {"$set": {
                "status": ApplicationStatus.rejected.value,
                "updated_at": datetime.utcnow()
            }}
        )
        return result.modified_count

    def delete(self, application_id) -> None:
        """Raises NotFoundError if nothing was deleted."""
        oid = to_object_id(application_id)
        deleted = 0
        if oid is not None:
            deleted = self.collection.delete_one({"_id": oid}).deleted_count
        if deleted == 0:
            raise NotFoundError("Application not found")
