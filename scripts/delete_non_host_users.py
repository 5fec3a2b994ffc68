"""
Delete every user who does not host an event, together with the rows that
reference them. Hosts, their events and reference data are kept.

Usage:
    python scripts/delete_non_host_users.py            # dry run, report only
    python scripts/delete_non_host_users.py --confirm  # actually delete
"""
import sys
import os

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

import argparse
import asyncio
import traceback
from sqlalchemy import func, select
from app.core.database import session_manager
from app.models.event import Event
from app.models.user import User
from app.services.DataCleanupService import plan_non_host_purge, purge_non_host_users, reference_counts


async def delete_non_host_users(db, confirm: bool = False) -> int:
    """Returns the process exit code."""
    try:
        plan = await plan_non_host_purge(db)

        print(f"👑 Hosts (kept): {len(plan.hosts)}")
        for host in plan.hosts:
            print(f"   - {host.name} ({host.email})")
        print(f"👥 Users to delete: {len(plan.non_hosts)}")
        for user in plan.non_hosts:
            print(f"   - {user.name} ({user.email})")

        if not plan.non_hosts:
            print("✅ No non-host users found. Nothing to delete.")
            return 0

        print("📊 Related rows that will be deleted:")
        for label, count in plan.dependent_counts.items():
            print(f"   - {label}: {count}")

        if not confirm:
            print("ℹ️ Dry run only. Re-run with --confirm to delete these users.")
            return 0

        print("🗑️  Starting deletion...")
        await purge_non_host_users(db, plan)
        await db.commit()

        remaining_users = (await db.execute(select(func.count()).select_from(User))).scalar_one()
        remaining_events = (await db.execute(select(func.count()).select_from(Event))).scalar_one()
        print(f"🔍 Remaining users: {remaining_users} (expected {len(plan.hosts)})")
        print(f"🔍 Remaining events: {remaining_events}")
        for label, count in (await reference_counts(db)).items():
            print(f"🛡️  {label}: {count}")

        if remaining_users != len(plan.hosts):
            print("⚠️ Remaining user count does not match the number of hosts")
            return 1

        print(f"🎉 Deleted {len(plan.non_hosts)} non-host users")
        return 0

    except Exception as e:
        print(f"❌ Error deleting non-host users: {str(e)}")
        traceback.print_exc()
        await db.rollback()
        return 1


async def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Delete users who do not host any event")
    parser.add_argument("--confirm", action="store_true", help="Actually delete (default is a dry run)")
    args = parser.parse_args(argv)

    await session_manager.init()
    try:
        async with session_manager.get_session() as db:
            return await delete_non_host_users(db, confirm=args.confirm)
    finally:
        await session_manager.close()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
