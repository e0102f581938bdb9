#!/usr/bin/env python3
"""
Connection Test Script

Run this to verify the database connection and indexes are working.
Usage: python scripts/test_connections.py
"""
import sys
sys.path.insert(0, '.')

from placement_portal.db.mongodb import test_mongo_connection, init_mongo_indexes, get_mongo_db, COLLECTIONS
from placement_portal.core.config import get_settings


def main():
    settings = get_settings()
    print("=" * 50)
    print("PLACEMENT PORTAL - CONNECTION TEST")
    print("=" * 50)

    # Test MongoDB
    print("\n[1] Testing MongoDB...")
    print(f"    URI: {settings.mongodb_uri}")
    print(f"    Database: {settings.mongodb_db}")
    if not test_mongo_connection():
        print("    ❌ MongoDB: FAILED")
        return
    print("    ✅ MongoDB: CONNECTED")

    # Indexes
    print("\n[2] Creating indexes...")
    init_mongo_indexes()
    index_names = get_mongo_db()[COLLECTIONS["applications"]].index_information().keys()
    if "uniq_student_company" in index_names:
        print("    ✅ Unique (student_id, company_id) index present")
    else:
        print("    ❌ Unique application index missing")

    # Rules
    print("\n[3] Application rules...")
    print(f"    GPA eligibility enforced: {settings.enforce_eligibility}")
    print(f"    Deadline enforced: {settings.enforce_deadline}")

    print("\n" + "=" * 50)
    print("Connection test complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
