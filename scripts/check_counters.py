"""Compare cached like/comment/repost/follower counters with live row counts.

Usage: python -m scripts.check_counters [--fix]
"""
import argparse
import asyncio

from app.core.logging import configure_logging
from app.db.session import async_session_maker
from app.services.counter_service import find_counter_drift, repair_counters


async def check_counters(fix: bool = False) -> int:
    async with async_session_maker() as db:
        drift = await find_counter_drift(db)
        if not drift:
            print("All counters match their source rows.")
            return 0

        print(f"Found {len(drift)} drifted counter(s):")
        for item in drift:
            print(f"  - {item.table}.{item.column} id={item.row_id}: cached={item.cached} actual={item.actual}")

        if fix:
            fixed = await repair_counters(db)
            await db.commit()
            print(f"\nRepaired {fixed} counter(s).")
            return 0
        print("\nRun with --fix to repair.")
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--fix", action="store_true", help="write live counts into drifted rows")
    args = parser.parse_args()
    configure_logging()
    raise SystemExit(asyncio.run(check_counters(fix=args.fix)))
