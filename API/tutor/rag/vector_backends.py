from abc import ABC, abstractmethod
from dataclasses import dataclass

from sqlalchemy import ColumnElement, Select, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tutor.models.entities import ContentItem


@dataclass(frozen=True)
class ScoredContent:
    content: str
    topic: str
    type: str
    difficulty: str
    similarity: float


class VectorBackend(ABC):
    name: str

    @abstractmethod
    def distance(self, query_vec: list[float]) -> ColumnElement[float]:
        raise NotImplementedError

    def similarity(self, query_vec: list[float]) -> ColumnElement[float]:
        return (1 - self.distance(query_vec)).label("similarity")


class PGVectorBackend(VectorBackend):
    name = "pgvector"

    def distance(self, query_vec: list[float]) -> ColumnElement[float]:
        return ContentItem.embedding.cosine_distance(query_vec)


class ContentSearch(ABC):
    """Similarity search over stored content, nearest first."""

    @abstractmethod
    async def search(self, query_vec: list[float], *, topic: str | None, limit: int) -> list[ScoredContent]:
        raise NotImplementedError


class PgContentSearch(ContentSearch):
    def __init__(self, db: AsyncSession, backend: VectorBackend | None = None):
        self.db = db
        self.backend = backend or PGVectorBackend()

    def build_query(self, query_vec: list[float], *, topic: str | None, limit: int) -> Select:
        stmt = select(
            ContentItem.content,
            ContentItem.topic,
            ContentItem.type,
            ContentItem.difficulty,
            self.backend.similarity(query_vec),
        )
        if topic is not None:
            stmt = stmt.where(func.lower(ContentItem.topic) == topic.lower())
        return stmt.order_by(self.backend.distance(query_vec)).limit(limit)

    async def search(self, query_vec: list[float], *, topic: str | None, limit: int) -> list[ScoredContent]:
        try:
            rows = (await self.db.execute(self.build_query(query_vec, topic=topic, limit=limit))).all()
        except SQLAlchemyError:
            # Leave the request session usable for the writes that follow retrieval.
            await self.db.rollback()
            raise
        return [
            ScoredContent(
                content=row.content,
                topic=row.topic,
                type=row.type,
                difficulty=row.difficulty,
                similarity=float(row.similarity or 0.0),
            )
            for row in rows
        ]
