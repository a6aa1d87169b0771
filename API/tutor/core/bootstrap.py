import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from tutor.models.base import Base
from tutor.models import entities  # noqa: F401  (registers tables on Base.metadata)

logger = logging.getLogger(__name__)


async def initialize_database(engine: AsyncEngine) -> None:
    """Create the pgvector extension, all tables and the ANN index if they are missing."""
    async with engine.begin() as conn:
        await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        await conn.run_sync(Base.metadata.create_all)
        await conn.execute(
            text(
                "CREATE INDEX IF NOT EXISTS idx_content_items_embedding "
                "ON content_items USING hnsw (embedding vector_cosine_ops)"
            )
        )
    logger.info("Database schema ready")
