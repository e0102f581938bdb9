"""
MongoDB Service - access to the records the engine reads but does not own.

Collections used here:
1. users     - students (gpa, is_placed) and officers
2. companies - postings (min_gpa, deadline, status)

Only one write happens through this module: the conditional is_placed
flip that arbitrates concurrent approvals (the linchpin).
"""

from datetime import datetime
from typing import Optional, Dict, Iterable
from bson import ObjectId
from bson.errors import InvalidId
from pymongo.collection import Collection
from pymongo.database import Database

from placement_portal.db.mongodb import get_collection, COLLECTIONS
from placement_portal.schemas.schemas import UserRole, CompanyStatus


# ============================================================
# HELPERS
# ============================================================

def to_object_id(value) -> Optional[ObjectId]:
    """Parse an id coming from the outside. Malformed ids become None."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


# ============================================================
# USERS COLLECTION
# ============================================================

class UserService:
    """
    Reads user records (students and officers) and owns the students'
    is_placed flag. Nothing else in the code base writes is_placed.
    """

    def __init__(self, db: Database = None):
        self.collection: Collection = get_collection(COLLECTIONS["users"], db)

    def get_by_id(self, user_id) -> Optional[dict]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        return self.collection.find_one({"_id": oid})

    def get_many(self, user_ids: Iterable) -> Dict[ObjectId, dict]:
        """Fetch several users at once, keyed by _id (read model helper)."""
        ids = list({oid for oid in user_ids if oid is not None})
        if not ids:
            return {}
        return {doc["_id"]: doc for doc in self.collection.find({"_id": {"$in": ids}})}

    def is_placed(self, student_id) -> bool:
        """Fresh read of the flag (never served from an earlier fetch)."""
        oid = to_object_id(student_id)
        if oid is None:
            return False
        doc = self.collection.find_one({"_id": oid}, {"is_placed": 1})
        return bool(doc and doc.get("is_placed"))

    def placed_application_id(self, student_id) -> Optional[ObjectId]:
        """Fresh read of the application that placed the student, if any."""
        oid = to_object_id(student_id)
        if oid is None:
            return None
        doc = self.collection.find_one({"_id": oid}, {"placed_application_id": 1})
        return doc.get("placed_application_id") if doc else None

    def mark_placed(self, student_id: ObjectId, application_id: ObjectId) -> bool:
        """
        Linchpin write: set is_placed only if it is currently not set.

        Returns True if this call placed the student, False if someone
        else already did (or the student does not exist).
        """
        result = self.collection.update_one(
            {"_id": student_id, "is_placed": {"$ne": True}},
            {"$set": {
                "is_placed": True,
                "placed_application_id": application_id,
                "placed_at": datetime.utcnow()
            }}
        )
        return result.modified_count > 0

    def release_placement(self, student_id: ObjectId, application_id: ObjectId) -> bool:
        """
        Undo mark_placed when the approval it guarded could not be written.
        Only clears the flag if it still points at `application_id`.

        Called only by the approval cascade, before the application's
        approved status has been written, so no approved placement is ever
        undone here. There is no operation that un-places a student.
        """
        result = self.collection.update_one(
            {"_id": student_id, "placed_application_id": application_id},
            {
                "$set": {"is_placed": False},
                "$unset": {"placed_application_id": "", "placed_at": ""}
            }
        )
        return result.modified_count > 0

    def count_students(self, placed_only: bool = False) -> int:
        query = {"role": UserRole.student.value}
        if placed_only:
            query["is_placed"] = True
        return self.collection.count_documents(query)


# ============================================================
# COMPANIES COLLECTION
# ============================================================

class CompanyService:
    """
    Read-only access to company postings.
    """

    def __init__(self, db: Database = None):
        self.collection: Collection = get_collection(COLLECTIONS["companies"], db)

    def get_by_id(self, company_id) -> Optional[dict]:
        oid = to_object_id(company_id)
        if oid is None:
            return None
        return self.collection.find_one({"_id": oid})

    def get_many(self, company_ids: Iterable) -> Dict[ObjectId, dict]:
        ids = list({oid for oid in company_ids if oid is not None})
        if not ids:
            return {}
        return {doc["_id"]: doc for doc in self.collection.find({"_id": {"$in": ids}})}

    def count_companies(self, active_only: bool = False) -> int:
        query = {"status": CompanyStatus.active.value} if active_only else {}
        return self.collection.count_documents(query)

