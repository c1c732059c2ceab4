#!/usr/bin/env python3
"""Remove stored events whose competition name fails the current rule.

The refresh cycle already runs this after every harvest; use the script to
clean up by hand after tightening the rule:
    docker exec sportcal python scripts/purge_invalid_events.py --dry-run
    docker exec sportcal python scripts/purge_invalid_events.py
"""

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.database import init_db  # noqa: E402
from app.services.event_store import SqlEventStore  # noqa: E402
from app.services.purge import find_invalid_events, purge_invalid_events  # noqa: E402
from app.subjects import SportCategory, low_confidence_categories  # noqa: E402


async def _run(categories: list[SportCategory], dry_run: bool) -> None:
    await init_db()
    store = SqlEventStore()
    if dry_run:
        invalid = await find_invalid_events(store, categories)
        total = 0
        for category, rows in invalid.items():
            for event_id, comp in rows:
                print(f"  {category.value:<10} {event_id}  {comp!r}")
            total += len(rows)
        print(f"{total} events would be removed")
        return

    removed = await purge_invalid_events(store, categories)
    print(f"Removed {removed} events")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--category",
        action="append",
        choices=[c.value for c in SportCategory],
        help="Category to sweep (repeatable). Default: all scraped categories.",
    )
    parser.add_argument("--dry-run", action="store_true", help="List, do not delete")
    args = parser.parse_args()

    if args.category:
        categories = [SportCategory(c) for c in args.category]
    else:
        categories = low_confidence_categories()
    asyncio.run(_run(categories, args.dry_run))


if __name__ == "__main__":
    main()
