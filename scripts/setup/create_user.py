# scripts/setup/create_user.py
"""
Create an API user and print its key. Use this to bootstrap the first Admin;
further users can be created through POST /api/users.

Usage:
    python scripts/setup/create_user.py --name "Jane Doe" --email jane@example.com --role Admin
"""

import sys
import os
import argparse
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from dealership.database import SessionLocal, create_tables
from dealership.exceptions import ConflictError
from dealership.services.user_service import create_user


def main():
    parser = argparse.ArgumentParser(description="Create a back-office API user")
    parser.add_argument("--name", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--role", choices=["Admin", "Manager", "Clerk"], default="Admin")
    args = parser.parse_args()

    create_tables()
    db = SessionLocal()
    try:
        user, api_key = create_user(db, args.name, args.email, args.role)
    except ConflictError as e:
        print(f"❌ {e.message}")
        sys.exit(1)
    finally:
        db.close()

    print(f"✅ Created {user.role} {user.email} (id={user.id})")
    print(f"🔑 API key (shown once): {api_key}")
    print("   Send it as 'X-API-Key: <key>' or 'Authorization: Bearer <key>'")


if __name__ == "__main__":
    main()
