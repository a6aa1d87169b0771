"""Topic-level maintenance over stored content and the sessions that reference it."""
import json
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tutor.core.errors import TopicError
from tutor.core.logging import DOMAIN_MAINTENANCE, get_domain_logger
from tutor.models.entities import ChatMessage, ChatSession, ContentItem, QuizAnswer, QuizSession

logger = get_domain_logger(__name__, DOMAIN_MAINTENANCE)


@dataclass(frozen=True)
class TopicSummary:
    topic: str
    count: int
    first_added: datetime | None
    last_added: datetime | None


async def _content_count(db: AsyncSession, topic: str) -> int:
    stmt = select(func.count()).select_from(ContentItem).where(ContentItem.topic == topic)
    return int((await db.execute(stmt)).scalar_one())


async def list_topics(db: AsyncSession) -> list[TopicSummary]:
    rows = (
        await db.execute(
            select(
                ContentItem.topic,
                func.count().label("count"),
                func.min(ContentItem.created_at).label("first_added"),
                func.max(ContentItem.created_at).label("last_added"),
            )
            .group_by(ContentItem.topic)
            .order_by(ContentItem.topic)
        )
    ).all()
    return [TopicSummary(r.topic, int(r.count), r.first_added, r.last_added) for r in rows]


async def remove_topic(db: AsyncSession, topic: str) -> dict[str, int]:
    """Delete a topic's content and every chat/quiz session filed under it."""
    async with db.begin():
        count = await _content_count(db, topic)
        if count == 0:
            raise TopicError(f'Topic "{topic}" not found')
        await db.execute(delete(ContentItem).where(ContentItem.topic == topic))
        chat_ids = select(ChatSession.id).where(ChatSession.topic == topic).scalar_subquery()
        await db.execute(delete(ChatMessage).where(ChatMessage.session_id.in_(chat_ids)))
        chat_sessions = (await db.execute(delete(ChatSession).where(ChatSession.topic == topic))).rowcount
        quiz_ids = select(QuizSession.id).where(QuizSession.topic == topic).scalar_subquery()
        await db.execute(delete(QuizAnswer).where(QuizAnswer.session_id.in_(quiz_ids)))
        quiz_sessions = (await db.execute(delete(QuizSession).where(QuizSession.topic == topic))).rowcount

    result = {"content_items": count, "chat_sessions": chat_sessions, "quiz_sessions": quiz_sessions}
    logger.info(json.dumps({"type": "topic_removed", "topic": topic, **result}))
    return result


async def rename_topic(db: AsyncSession, old_name: str, new_name: str) -> int:
    """Rename a topic everywhere; refuses when the old topic is missing or the new one exists."""
    async with db.begin():
        count = await _content_count(db, old_name)
        if count == 0:
            raise TopicError(f'Topic "{old_name}" not found')
        if await _content_count(db, new_name) > 0:
            raise TopicError(f'Topic "{new_name}" already exists')
        await db.execute(update(ContentItem).where(ContentItem.topic == old_name).values(topic=new_name))
        await db.execute(update(ChatSession).where(ChatSession.topic == old_name).values(topic=new_name))
        await db.execute(update(QuizSession).where(QuizSession.topic == old_name).values(topic=new_name))

    logger.info(json.dumps({"type": "topic_renamed", "from": old_name, "to": new_name, "content_items": count}))
    return count


async def clear_all_data(db: AsyncSession) -> None:
    async with db.begin():
        for model in (ChatMessage, ChatSession, QuizAnswer, QuizSession, ContentItem):
            await db.execute(delete(model))
    logger.warning(json.dumps({"type": "all_data_cleared"}))
