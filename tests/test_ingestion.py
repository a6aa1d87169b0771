from __future__ import annotations

from pathlib import Path

import pytest

from tutor.core.errors import EmbeddingError
from tutor.models.entities import ContentItem
from tutor.rag import ingest
from tutor.rag.ingest import chunk_text, clean_text, ingest_directory, store_chunks

SENTENCE = "Quadratic equations have at most two real roots which can be found by factorisation"


def test_clean_text_collapses_whitespace_and_drops_non_printable():
    assert clean_text("  x²  +\n\n 5x\t= 0 \x07 ") == "x + 5x = 0"


def test_short_text_becomes_one_chunk_and_tiny_text_is_dropped():
    assert chunk_text(f"{SENTENCE}.") == [SENTENCE]
    assert chunk_text("Too short. Really.") == []


def test_chunks_respect_max_size_and_carry_word_overlap():
    text = ". ".join(f"{SENTENCE} number {i}" for i in range(6)) + "."
    chunks = chunk_text(text, max_chunk_size=200, overlap=30)

    assert len(chunks) > 1
    for previous, current in zip(chunks, chunks[1:]):
        tail = previous.split(" ")[-3:]
        assert current.split(" ")[:3] == tail


def test_zero_overlap_starts_fresh_chunks():
    text = ". ".join(f"{SENTENCE} number {i}" for i in range(4)) + "."
    chunks = chunk_text(text, max_chunk_size=120, overlap=0)
    assert chunks[1].startswith("Quadratic equations")


@pytest.mark.asyncio
async def test_store_chunks_skips_short_and_survives_embedding_failures(fake_db):
    calls: list[str] = []

    async def flaky_embed(text: str) -> list[float]:
        calls.append(text)
        if len(calls) == 2:
            raise EmbeddingError("timeout")
        return [0.0] * 4

    chunks = [SENTENCE, "short", SENTENCE + " again", SENTENCE]
    result = await store_chunks(fake_db, chunks, "Quadratic Equations", embed=flaky_embed, delay=0)

    assert result == {"stored": 2, "skipped": 1, "failed": 1}
    assert fake_db.rollbacks == 1
    assert all(isinstance(item, ContentItem) for item in fake_db.added)
    assert {item.type for item in fake_db.added} == {"explanation"}
    assert {item.difficulty for item in fake_db.added} == {"medium"}


@pytest.mark.asyncio
async def test_ingest_directory_skips_unreadable_files(fake_db, tmp_path: Path, monkeypatch):
    (tmp_path / "good.pdf").write_bytes(b"%PDF-placeholder")
    (tmp_path / "broken.PDF").write_bytes(b"not a pdf")
    (tmp_path / "notes.txt").write_text("ignored")

    def fake_extract(path: Path) -> str:
        if path.name == "broken.PDF":
            raise ValueError("EOF marker not found")
        return f"{SENTENCE}."

    async def embed(text: str) -> list[float]:
        return [0.0] * 4

    monkeypatch.setattr(ingest, "extract_pdf_text", fake_extract)
    summary = await ingest_directory(fake_db, tmp_path, "Quadratic Equations", embed=embed, delay=0)

    assert summary["files"] == 2
    assert summary["files_failed"] == 1
    assert summary["stored"] == 1
    assert fake_db.added[0].topic == "Quadratic Equations"


@pytest.mark.asyncio
async def test_ingest_directory_rejects_missing_directory(fake_db, tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        await ingest_directory(fake_db, tmp_path / "missing", "General")
