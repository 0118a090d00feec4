"""
Seed the achievement catalog.

Purpose:
- Insert catalog entries that are missing from the achievements table
- SAFE to run multiple times (won't duplicate entries)

The API also seeds on startup; this is for databases managed with
Alembic where the app has not been started yet.
"""
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from questline.db.base import SessionLocal
from questline.achievements.models import Achievement
from questline.achievements.service import seed_achievements


def main() -> int:
    db = SessionLocal()

    try:
        created = seed_achievements(db)
        total = db.query(Achievement).count()

        print("Achievement seeding complete")
        print(f"   Created: {created}")
        print(f"   Catalog size: {total}")
        return 0

    except Exception as e:
        db.rollback()
        print("Error while seeding achievements")
        print(str(e))
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
