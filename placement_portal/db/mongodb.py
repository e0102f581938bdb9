"""
MongoDB Connection Utility

MongoDB stores:
- users: students, placement officers and admins (gpa, is_placed)
- companies: postings with min_gpa and deadline
- applications: one document per (student, company) pair

WHY MongoDB?
- The portal's records are self-contained documents
- Conditional single-document updates give us the placement linchpin
- Unique compound index arbitrates duplicate applications
"""
import logging

from pymongo import MongoClient, ASCENDING, DESCENDING
from pymongo.database import Database
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from placement_portal.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(settings.mongodb_uri)
    return _client


def get_mongo_db() -> Database:
    """Get the portal database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[settings.mongodb_db]
    return _db


def get_database() -> Database:
    """
    Dependency for FastAPI route injection.
    Tests override this to point at an in-memory database.
    """
    return get_mongo_db()


def get_collection(name: str, db: Database = None) -> Collection:
    """Get a specific collection from `db` (defaults to the app database)."""
    if db is None:
        db = get_mongo_db()
    return db[name]


def test_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        client = get_mongo_client()
        # ping command checks connection
        client.admin.command('ping')
        return True
    except PyMongoError as e:
        logger.warning("MongoDB connection failed: %s", e)
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "users": "users",
    "companies": "companies",
    "applications": "applications",
}


def init_mongo_indexes(db: Database = None):
    """
    Create indexes. Call this once during app startup.

    The (student_id, company_id) unique index is what enforces one
    application per student per company, including under concurrent inserts.
    """
    if db is None:
        db = get_mongo_db()

    applications = db[COLLECTIONS["applications"]]
    applications.create_index(
        [("student_id", ASCENDING), ("company_id", ASCENDING)],
        unique=True,
        name="uniq_student_company"
    )
    # Cascade and "my applications" lookups
    applications.create_index([("student_id", ASCENDING), ("status", ASCENDING)])
    applications.create_index([("applied_date", DESCENDING)])

    db[COLLECTIONS["users"]].create_index("email", unique=True)
    db[COLLECTIONS["users"]].create_index([("role", ASCENDING), ("is_placed", ASCENDING)])
    db[COLLECTIONS["companies"]].create_index("status")

    logger.info("MongoDB indexes created successfully")
