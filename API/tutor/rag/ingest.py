import asyncio
import re
from collections.abc import Awaitable, Callable
from pathlib import Path

from pypdf import PdfReader
from sqlalchemy.ext.asyncio import AsyncSession

from tutor.core.logging import DOMAIN_INGESTION, get_domain_logger
from tutor.core.settings import settings
from tutor.models.entities import ContentItem
from tutor.rag.embeddings import embed_text

logger = get_domain_logger(__name__, DOMAIN_INGESTION)

_SENTENCE_END = re.compile(r"[.!?]+")
_WHITESPACE = re.compile(r"\s+")
_NON_PRINTABLE = re.compile(r"[^\x20-\x7E]")


def extract_pdf_text(path: Path) -> str:
    reader = PdfReader(str(path))
    parts = [page.extract_text() or "" for page in reader.pages]
    return "\n".join(part for part in parts if part.strip())


def clean_text(text: str) -> str:
    return _NON_PRINTABLE.sub("", _WHITESPACE.sub(" ", text or "")).strip()


def chunk_text(text: str, max_chunk_size: int | None = None, overlap: int | None = None) -> list[str]:
    """
    Greedy sentence packing. When a sentence would overflow the current chunk, the chunk is
    closed and the next one starts with its last `overlap // 10` words. Chunks of 50
    characters or fewer are dropped.
    """
    max_size = max_chunk_size or settings.ingest_chunk_size
    overlap_words = (settings.ingest_chunk_overlap if overlap is None else overlap) // 10
    sentences = [s.strip() for s in _SENTENCE_END.split(text or "") if s.strip()]

    chunks: list[str] = []
    current = ""
    for sentence in sentences:
        if len(current) + len(sentence) > max_size and current:
            chunks.append(current.strip())
            tail = current.split(" ")[-overlap_words:] if overlap_words > 0 else []
            current = " ".join(tail) + " " + sentence
        else:
            current += " " + sentence
    if current.strip():
        chunks.append(current.strip())

    return [chunk for chunk in chunks if len(chunk) > settings.ingest_min_chunk_chars]


async def store_chunks(
    db: AsyncSession,
    chunks: list[str],
    topic: str,
    *,
    embed: Callable[[str], Awaitable[list[float]]] = embed_text,
    delay: float | None = None,
) -> dict[str, int]:
    pause = settings.ingest_delay_seconds if delay is None else delay
    stored = skipped = failed = 0
    for index, raw in enumerate(chunks, start=1):
        chunk = clean_text(raw)
        if len(chunk) < settings.ingest_min_chunk_chars:
            skipped += 1
            continue
        try:
            embedding = await embed(chunk)
            db.add(ContentItem(topic=topic, type="explanation", difficulty="medium", content=chunk, embedding=embedding))
            await db.commit()
            stored += 1
        except Exception as exc:
            await db.rollback()
            failed += 1
            logger.warning("Chunk %d/%d for topic %s failed: %s", index, len(chunks), topic, exc)
            continue
        if pause > 0:
            await asyncio.sleep(pause)
    return {"stored": stored, "skipped": skipped, "failed": failed}


async def ingest_directory(
    db: AsyncSession,
    directory: Path | str,
    topic: str = "General",
    *,
    embed: Callable[[str], Awaitable[list[float]]] = embed_text,
    delay: float | None = None,
) -> dict:
    """Extract, chunk, embed and store every PDF in `directory`. Failing files are skipped."""
    root = Path(directory)
    if not root.is_dir():
        raise FileNotFoundError(f"Directory does not exist: {root}")

    pdf_files = sorted(p for p in root.iterdir() if p.suffix.lower() == ".pdf")
    logger.info("Found %d PDF files in %s (topic=%s)", len(pdf_files), root, topic)

    summary = {"topic": topic, "files": len(pdf_files), "files_failed": 0, "stored": 0, "skipped": 0, "failed": 0}
    for path in pdf_files:
        try:
            chunks = chunk_text(extract_pdf_text(path))
        except Exception as exc:
            summary["files_failed"] += 1
            logger.warning("Failed to process %s: %s", path.name, exc)
            continue
        logger.info("Processing %s: %d chunks", path.name, len(chunks))
        result = await store_chunks(db, chunks, topic, embed=embed, delay=delay)
        for key, value in result.items():
            summary[key] += value

    logger.info(
        "Ingestion finished: files=%d files_failed=%d stored=%d skipped=%d failed=%d",
        summary["files"],
        summary["files_failed"],
        summary["stored"],
        summary["skipped"],
        summary["failed"],
    )
    return summary
