"""
Wipe every user, event and participation row while keeping reference data
(colleges, degrees, specializations).

The operator must type three confirmation phrases before anything is deleted.

Usage:
    python scripts/delete_all_data.py
"""
import sys
import os

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

import asyncio
import traceback
from app.core.database import session_manager
from app.services.DataCleanupService import PURGE_ORDER, count_rows, purge_all_data, reference_counts
from app.utils.maintenance.confirmation import ConfirmationState, run_confirmation


def print_counts(title: str, counts: dict):
    print(title)
    for label, count in counts.items():
        print(f"   - {label}: {count}")


async def delete_all_data(db, prompt=input) -> int:
    """Returns the process exit code."""
    try:
        print("⚠️  WARNING: This will permanently delete ALL data except colleges, degrees and specializations!")
        print_counts("📊 Rows that will be deleted:", await count_rows(db, PURGE_ORDER))
        preserved = await reference_counts(db)
        print_counts("🛡️  Reference data that will be preserved:", preserved)

        state = run_confirmation(prompt)
        if state != ConfirmationState.CONFIRMED:
            print("❌ Deletion cancelled. No data was deleted.")
            return 0

        print("🗑️  Starting deletion...")
        deleted = await purge_all_data(db)

        remaining = await reference_counts(db)
        print_counts("🔍 Reference data after deletion:", remaining)
        if remaining != preserved:
            print("❌ Reference data changed during deletion. Rolling back, nothing was deleted.")
            await db.rollback()
            return 1

        await db.commit()
        print(f"✅ Deleted {sum(deleted.values())} rows")
        print("🎉 All data deleted successfully!")
        return 0

    except Exception as e:
        print(f"❌ Error during deletion: {str(e)}")
        traceback.print_exc()
        await db.rollback()
        return 1


async def main() -> int:
    await session_manager.init()
    try:
        async with session_manager.get_session() as db:
            return await delete_all_data(db)
    finally:
        await session_manager.close()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
