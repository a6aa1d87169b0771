import hashlib
import math
import re

import httpx

from tutor.core.errors import EmbeddingError
from tutor.core.resilience import get_breaker
from tutor.core.settings import settings


def _tokenize(text: str) -> list[str]:
    return re.findall(r"[a-zA-Z0-9_]+", (text or "").lower())


def hash_embedding(text: str, dimensions: int | None = None) -> list[float]:
    """Deterministic bag-of-tokens vector, L2-normalised. Used offline and in tests."""
    dim = dimensions or settings.embedding_dimensions
    vec = [0.0] * dim
    tokens = _tokenize(text)
    if not tokens:
        return vec

    for token in tokens:
        digest = hashlib.sha256(token.encode("utf-8")).digest()
        idx = int.from_bytes(digest[:4], "little") % dim
        sign = 1.0 if (digest[4] % 2 == 0) else -1.0
        vec[idx] += sign

    norm = math.sqrt(sum(v * v for v in vec))
    if norm > 0:
        vec = [v / norm for v in vec]
    return vec


async def _ollama_embedding(text: str) -> list[float]:
    breaker = get_breaker(f"embedding:ollama:{settings.embedding_model}")
    if not breaker.can_execute():
        raise EmbeddingError("embedding circuit open")
    try:
        async with httpx.AsyncClient(timeout=settings.embedding_timeout_seconds) as client:
            response = await client.post(
                f"{settings.ollama_base_url.rstrip('/')}/api/embeddings",
                json={"model": settings.embedding_model, "prompt": text},
            )
            response.raise_for_status()
            payload = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        breaker.record_failure()
        raise EmbeddingError(f"Ollama embedding failed: {exc}") from exc
    except BaseException:
        breaker.record_failure()
        raise

    breaker.record_success()
    emb = payload.get("embedding")
    if not isinstance(emb, list) or not emb:
        raise EmbeddingError("Ollama returned an empty embedding")
    if len(emb) != settings.embedding_dimensions:
        raise EmbeddingError(
            f"Embedding has {len(emb)} dimensions, content store expects {settings.embedding_dimensions}"
        )
    return [float(x) for x in emb]


async def embed_text(text: str) -> list[float]:
    """
    Embed text with the configured provider.

    `ollama` calls the local embedding endpoint and raises EmbeddingError on any failure;
    callers decide how to degrade. `local` uses the hashing embedding (no network).
    """
    provider = (settings.embedding_provider or "").lower()
    if provider == "ollama":
        return await _ollama_embedding(text)
    if provider == "local":
        return hash_embedding(text)
    raise EmbeddingError(f"Unsupported embedding provider: {settings.embedding_provider}")
