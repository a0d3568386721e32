# scripts/setup/init_db.py
"""
Initialize database: creates all tables.
Run once before first launch, or after adding new models.
Usage: python scripts/setup/init_db.py
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from dealership.database import create_tables, engine
from dealership.config import settings


def main():
    print("🗄️  Dealership Back-Office DB Initialization")
    print("=" * 40)
    print(f"📡 Database: {settings.DATABASE_URL}")

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")
    except SQLAlchemyError as e:
        print(f"❌ Cannot connect to database: {e}")
        print("\nMake sure PostgreSQL is running and DATABASE_URL in .env is correct.")
        sys.exit(1)

    print("\n📋 Creating tables...")
    create_tables()

    tables = sorted(inspect(engine).get_table_names())
    print(f"\n📊 Tables in database ({len(tables)} total):")
    for t in tables:
        print(f"   ✓ {t}")

    print("\n🎉 Database ready! Create the first admin, then start the backend:")
    print("   python scripts/setup/create_user.py --name Admin --email admin@example.com --role Admin")
    print("   uvicorn dealership.main:app --host 0.0.0.0 --port 8080 --reload")


if __name__ == "__main__":
    main()
