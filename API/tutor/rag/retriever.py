"""
Relevance gate for curriculum retrieval.

Decides whether curriculum content should be injected into a tutoring prompt at all,
and if so which. The policy favours precision over recall:

1. Topic-mismatch pre-check: if the query mentions a keyword belonging to a different
   topic than the session's, return nothing so the tutor falls back to its off-topic
   redirect instead of leaking unrelated material.
2. Exact-topic pass: nearest `top_k` items of the session topic, kept at similarity >= 0.4.
3. Cross-topic fallback: nearest 10 items of any topic, kept only above 0.8.

Failures never reach the caller; an empty list means "no usable content".
"""
import json
import re
from collections.abc import Awaitable, Callable, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from tutor.core.logging import DOMAIN_RAG, get_domain_logger
from tutor.core.retrieval_metrics import record_retrieval
from tutor.core.settings import settings
from tutor.data.topic_keywords import TOPIC_KEYWORDS
from tutor.rag.embeddings import embed_text
from tutor.rag.vector_backends import ContentSearch, PgContentSearch, ScoredContent

logger = get_domain_logger(__name__, DOMAIN_RAG)

EXACT_TOPIC_THRESHOLD = 0.4
CROSS_TOPIC_THRESHOLD = 0.8
CROSS_TOPIC_CANDIDATES = 10

Embedder = Callable[[str], Awaitable[list[float]]]


def detect_topic_mismatch(
    user_query: str,
    session_topic: str,
    topic_keywords: Mapping[str, tuple[str, ...]] = TOPIC_KEYWORDS,
) -> str | None:
    """
    Return the first other topic whose keyword stems start a word of the query, else None.

    Stems that also belong to the session topic (e.g. "equation" for both quadratic
    equations and algebra) are not evidence of a mismatch.
    """
    query_lower = (user_query or "").lower()
    topic_lower = (session_topic or "").strip().lower()
    own = {k.lower() for t, keywords in topic_keywords.items() if t.lower() == topic_lower for k in keywords}
    for topic, keywords in topic_keywords.items():
        if topic.lower() == topic_lower:
            continue
        for keyword in keywords:
            stem = keyword.lower()
            if stem not in own and re.search(rf"(?<!\w){re.escape(stem)}", query_lower):
                return topic
    return None


def _preview(text: str, limit: int = 80) -> str:
    return (text or "")[:limit].replace("\n", " ")


class RelevanceGate:
    def __init__(
        self,
        search: ContentSearch,
        embed: Embedder | None = None,
        topic_keywords: Mapping[str, tuple[str, ...]] = TOPIC_KEYWORDS,
    ):
        self.search = search
        self.embed = embed or embed_text
        self.topic_keywords = topic_keywords

    async def retrieve(self, user_query: str, session_topic: str, top_k: int = 3) -> list[str]:
        try:
            return await self._retrieve(user_query, session_topic, top_k)
        except Exception as exc:
            logger.warning("Retrieval failed, continuing without curriculum content: %s", exc, exc_info=True)
            record_retrieval("error")
            return []

    async def _retrieve(self, user_query: str, session_topic: str, top_k: int) -> list[str]:
        mismatch = detect_topic_mismatch(user_query, session_topic, self.topic_keywords)
        if mismatch is not None:
            logger.info(
                json.dumps(
                    {
                        "type": "topic_mismatch",
                        "session_topic": session_topic,
                        "detected_topic": mismatch,
                    }
                )
            )
            record_retrieval("mismatch")
            return []

        query_vec = await self.embed(user_query)

        candidates = await self.search.search(query_vec, topic=session_topic, limit=top_k)
        relevant = self._filter(candidates, lambda s: s >= EXACT_TOPIC_THRESHOLD, label="exact")
        if relevant:
            logger.info("Using %d exact-topic results for '%s'", len(relevant), session_topic)
            record_retrieval("exact", relevant[0].similarity)
            return [item.content for item in relevant]

        if candidates:
            logger.info(
                "Topic '%s' matched but no result reached %.2f; trying cross-topic",
                session_topic,
                EXACT_TOPIC_THRESHOLD,
            )
        else:
            logger.info("No stored content for topic '%s'; trying cross-topic", session_topic)

        cross = await self.search.search(query_vec, topic=None, limit=CROSS_TOPIC_CANDIDATES)
        relevant = self._filter(cross, lambda s: s > CROSS_TOPIC_THRESHOLD, label="cross")
        if not relevant:
            logger.info("No relevant content for '%s'", session_topic)
            record_retrieval("empty")
            return []
        logger.info("Using %d cross-topic results for '%s'", min(len(relevant), top_k), session_topic)
        record_retrieval("cross", relevant[0].similarity)
        return [item.content for item in relevant[:top_k]]

    @staticmethod
    def _filter(
        candidates: list[ScoredContent],
        keep: Callable[[float], bool],
        *,
        label: str,
    ) -> list[ScoredContent]:
        kept: list[ScoredContent] = []
        for rank, item in enumerate(candidates, start=1):
            logger.debug(
                "%s #%d topic=%s similarity=%.3f content=%s",
                label,
                rank,
                item.topic,
                item.similarity,
                _preview(item.content),
            )
            if keep(item.similarity):
                kept.append(item)
        return kept


async def retrieve_relevant_content(
    db: AsyncSession,
    user_query: str,
    topic: str,
    top_k: int | None = None,
) -> list[str]:
    gate = RelevanceGate(PgContentSearch(db))
    return await gate.retrieve(user_query, topic, top_k or settings.chat_retrieval_top_k)
