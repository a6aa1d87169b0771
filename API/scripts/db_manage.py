#!/usr/bin/env python3
"""
Inspect and maintain curriculum topics.
Usage (from API/):
  python -m scripts.db_manage list
  python -m scripts.db_manage remove "Topic Name"
  python -m scripts.db_manage rename "Old Name" "New Name"
  python -m scripts.db_manage clear --yes
"""
from __future__ import annotations

import argparse
import asyncio
import sys

from tutor.core.errors import TopicError
from tutor.core.logging import configure_logging
from tutor.core.settings import settings
from tutor.memory.database import SessionLocal, engine
from tutor.memory.topics import clear_all_data, list_topics, remove_topic, rename_topic


def _format_date(value) -> str:
    return value.strftime("%Y-%m-%d") if value else "-"


async def _list() -> None:
    async with SessionLocal() as db:
        topics = await list_topics(db)
    if not topics:
        print("No topics found in database.")
        return
    print("Topics in database:")
    for item in topics:
        print(f"  {item.topic}")
        print(f"    Content items: {item.count}")
        print(f"    Added: {_format_date(item.first_added)} to {_format_date(item.last_added)}")


async def _remove(topic: str) -> None:
    async with SessionLocal() as db:
        result = await remove_topic(db, topic)
    print(
        f"Removed topic '{topic}': {result['content_items']} content items, "
        f"{result['chat_sessions']} chat sessions, {result['quiz_sessions']} quiz sessions."
    )


async def _rename(old_name: str, new_name: str) -> None:
    async with SessionLocal() as db:
        count = await rename_topic(db, old_name, new_name)
    print(f"Renamed '{old_name}' to '{new_name}' ({count} content items).")


async def _clear() -> None:
    async with SessionLocal() as db:
        await clear_all_data(db)
    print("All data cleared from database.")


async def run(args: argparse.Namespace) -> int:
    try:
        if args.command == "list":
            await _list()
        elif args.command == "remove":
            await _remove(args.topic)
        elif args.command == "rename":
            await _rename(args.old_name, args.new_name)
        elif args.command == "clear":
            if not args.yes:
                print("Refusing to clear all data without --yes.", file=sys.stderr)
                return 1
            await _clear()
    except TopicError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await engine.dispose()
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Database management for curriculum topics")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("list", help="List all topics with item counts")
    remove = sub.add_parser("remove", help="Remove a topic and its sessions")
    remove.add_argument("topic")
    rename = sub.add_parser("rename", help="Rename a topic everywhere")
    rename.add_argument("old_name")
    rename.add_argument("new_name")
    clear = sub.add_parser("clear", help="Remove ALL data")
    clear.add_argument("--yes", action="store_true", help="Confirm clearing every table")
    args = parser.parse_args()

    configure_logging(settings.log_level)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
