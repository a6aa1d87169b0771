#!/usr/bin/env python3
"""
Embed every PDF in a directory into the curriculum store under one topic.
Usage (from API/): python -m scripts.process_pdfs <pdf-dir> [topic]
Example: python -m scripts.process_pdfs ./pdfs/quadratic "Quadratic Equations"
"""
from __future__ import annotations

import argparse
import asyncio
import sys

from tutor.core.logging import configure_logging
from tutor.core.settings import settings
from tutor.memory.database import SessionLocal, engine
from tutor.rag.ingest import ingest_directory


async def run(directory: str, topic: str) -> int:
    try:
        async with SessionLocal() as db:
            summary = await ingest_directory(db, directory, topic)
    except FileNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await engine.dispose()

    if summary["files"] == 0:
        print("No PDF files found to process.")
        return 0
    print(
        f"Processed {summary['files']} file(s) for topic '{topic}': "
        f"{summary['stored']} chunks stored, {summary['skipped']} skipped, "
        f"{summary['failed']} failed, {summary['files_failed']} file(s) unreadable."
    )
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Extract, chunk and embed PDFs into content_items")
    parser.add_argument("directory", help="Directory containing the PDF files")
    parser.add_argument("topic", nargs="?", default="General", help="Topic to file the content under (default General)")
    args = parser.parse_args()

    configure_logging(settings.log_level)
    return asyncio.run(run(args.directory, args.topic))


if __name__ == "__main__":
    sys.exit(main())
