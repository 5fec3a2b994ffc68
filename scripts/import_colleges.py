"""
Load colleges from a CSV export into the reference table.

Usage:
    python scripts/import_colleges.py <path-to-csv> [--replace]
"""
import sys
import os

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

import argparse
import asyncio
import traceback
from app.core.database import session_manager
from app.services.CollegeImportService import import_colleges

USAGE = "Usage: python scripts/import_colleges.py <path-to-csv> [--replace]"


async def run_import(db, csv_path: str, replace: bool = False) -> int:
    """Returns the process exit code."""
    try:
        summary = await import_colleges(db, csv_path, replace=replace)
        await db.commit()

        print("🎉 College import completed!")
        print(f"   - Rows read: {summary.rows_read}")
        print(f"   - Incomplete rows skipped: {summary.skipped_incomplete}")
        print(f"   - Duplicates skipped: {summary.skipped_duplicates}")
        print(f"   - Colleges inserted: {summary.inserted}")
        print(f"📊 Totals: {summary.total_colleges} colleges, "
              f"{summary.total_states} states, {summary.total_districts} districts")
        return 0

    except Exception as e:
        print(f"❌ Error importing colleges: {str(e)}")
        traceback.print_exc()
        await db.rollback()
        return 1


async def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Import colleges from a CSV file", usage=USAGE)
    parser.add_argument("csv_path", nargs="?")
    parser.add_argument("--replace", action="store_true", help="Delete existing colleges before importing")
    args = parser.parse_args(argv)

    if not args.csv_path:
        print(USAGE)
        return 1
    if not os.path.isfile(args.csv_path):
        print(f"❌ CSV file not found: {args.csv_path}")
        return 1

    await session_manager.init()
    try:
        async with session_manager.get_session() as db:
            return await run_import(db, args.csv_path, replace=args.replace)
    finally:
        await session_manager.close()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
