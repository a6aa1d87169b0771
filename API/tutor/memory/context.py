"""
Derived learner context for prompt building.

Contexts are recomputed from the database on every request and never cached, so mastery
and streaks always reflect the latest submitted answer. Lookup failures degrade to
`default_context` rather than failing the request.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tutor.agents.adaptation import (
    compute_streaks,
    difficulty_from_mastery,
    identify_knowledge_gaps,
    normalize_difficulty,
    subject_from_topic,
)
from tutor.core.logging import DOMAIN_ADAPTATION, get_domain_logger
from tutor.core.settings import settings
from tutor.models.entities import ChatMessage, ChatSession, QuizAnswer, QuizSession

logger = get_domain_logger(__name__, DOMAIN_ADAPTATION)


@dataclass(frozen=True)
class ConversationTurn:
    role: str
    content: str
    timestamp: datetime | None = None


@dataclass(frozen=True)
class UserContext:
    session_id: int | None
    topic: str
    subject: str
    mastery: int
    gaps: list[str]
    correct_count: int
    total_count: int
    current_difficulty: str
    conversation_history: list[ConversationTurn] = field(default_factory=list)


@dataclass(frozen=True)
class QuizContext(UserContext):
    consecutive_correct: int = 0
    consecutive_wrong: int = 0


def default_context(session_id: int | None, topic: str, current_difficulty: str = "easy") -> UserContext:
    """The context used whenever nothing better is known about the learner."""
    return UserContext(
        session_id=session_id,
        topic=topic,
        subject=subject_from_topic(topic),
        mastery=0,
        gaps=["Basic concepts"],
        correct_count=0,
        total_count=0,
        current_difficulty=current_difficulty,
        conversation_history=[],
    )


def compute_mastery(correct: int, total: int) -> int:
    if total <= 0:
        return 0
    return round(100 * correct / total)


async def topic_performance(db: AsyncSession, topic: str, window: int | None = None) -> tuple[int, int]:
    """Sum (correct, total) over the most recent quiz sessions of a topic."""
    recent = (
        select(QuizSession.correct_answers, QuizSession.total_questions)
        .where(QuizSession.topic == topic)
        .order_by(desc(QuizSession.created_at), desc(QuizSession.id))
        .limit(window or settings.mastery_session_window)
        .subquery()
    )
    row = (
        await db.execute(
            select(
                func.coalesce(func.sum(recent.c.correct_answers), 0),
                func.coalesce(func.sum(recent.c.total_questions), 0),
            )
        )
    ).one()
    return int(row[0]), int(row[1])


async def recent_answer_results(db: AsyncSession, topic: str, window: int | None = None) -> list[bool]:
    """Correctness of the latest answers for a topic, newest first."""
    rows = (
        await db.execute(
            select(QuizAnswer.is_correct)
            .join(QuizSession, QuizAnswer.session_id == QuizSession.id)
            .where(QuizSession.topic == topic)
            .order_by(desc(QuizAnswer.created_at), desc(QuizAnswer.id))
            .limit(window or settings.streak_answer_window)
        )
    ).scalars().all()
    return [bool(value) for value in rows]


async def conversation_window(db: AsyncSession, session_id: int, limit: int | None = None) -> list[ConversationTurn]:
    rows = (
        await db.execute(
            select(ChatMessage.role, ChatMessage.content, ChatMessage.created_at)
            .where(ChatMessage.session_id == session_id)
            .order_by(desc(ChatMessage.created_at), desc(ChatMessage.id))
            .limit(limit or settings.chat_history_limit)
        )
    ).all()
    return [ConversationTurn(role=r.role, content=r.content, timestamp=r.created_at) for r in reversed(rows)]


async def _build_chat_context(db: AsyncSession, session_id: int, topic: str) -> UserContext:
    if await db.get(ChatSession, session_id) is None:
        raise LookupError(f"chat session {session_id} not found")

    history = await conversation_window(db, session_id)
    correct, total = await topic_performance(db, topic)
    mastery = compute_mastery(correct, total)
    return UserContext(
        session_id=session_id,
        topic=topic,
        subject=subject_from_topic(topic),
        mastery=mastery,
        gaps=identify_knowledge_gaps(mastery),
        correct_count=correct,
        total_count=total,
        current_difficulty=difficulty_from_mastery(mastery),
        conversation_history=history,
    )


async def load_chat_context(db: AsyncSession, session_id: int, topic: str) -> UserContext:
    try:
        return await _build_chat_context(db, session_id, topic)
    except Exception as exc:
        logger.warning("Chat context unavailable for session %s, using defaults: %s", session_id, exc)
        await db.rollback()
        return default_context(session_id, topic)


async def _build_quiz_context(db: AsyncSession, session_id: int, topic: str) -> QuizContext:
    quiz_session = await db.get(QuizSession, session_id)
    if quiz_session is None:
        raise LookupError(f"quiz session {session_id} not found")

    correct, total = await topic_performance(db, topic)
    mastery = compute_mastery(correct, total)
    consecutive_correct, consecutive_wrong = compute_streaks(await recent_answer_results(db, topic))
    return QuizContext(
        session_id=session_id,
        topic=topic,
        subject=subject_from_topic(topic),
        mastery=mastery,
        gaps=identify_knowledge_gaps(mastery),
        correct_count=correct,
        total_count=total,
        current_difficulty=normalize_difficulty(quiz_session.difficulty),
        consecutive_correct=consecutive_correct,
        consecutive_wrong=consecutive_wrong,
    )


async def load_quiz_context(db: AsyncSession, session_id: int, topic: str) -> QuizContext:
    try:
        return await _build_quiz_context(db, session_id, topic)
    except Exception as exc:
        logger.warning("Quiz context unavailable for session %s, using defaults: %s", session_id, exc)
        await db.rollback()
        base = default_context(session_id, topic, current_difficulty="medium")
        return QuizContext(**vars(base))


def with_difficulty(context: UserContext, difficulty: str) -> UserContext:
    """Copy of the context at another difficulty; the input context is not modified."""
    return replace(context, current_difficulty=difficulty)
