"""
Persistence for chat and quiz sessions.

Every write commits before returning so a later rollback on the same request session
(for example after a failed similarity search) cannot undo it. Counters are only ever
changed with relative UPDATE statements, never read-modify-write.
"""
import json
from dataclasses import dataclass

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tutor.agents.adaptation import normalize_difficulty
from tutor.core.errors import SessionNotFoundError
from tutor.core.logging import DOMAIN_CHAT, DOMAIN_QUIZ, get_domain_logger
from tutor.models.entities import ChatMessage, ChatSession, QuizAnswer, QuizSession

chat_logger = get_domain_logger(__name__, DOMAIN_CHAT)
quiz_logger = get_domain_logger(__name__, DOMAIN_QUIZ)


@dataclass(frozen=True)
class AnswerRecord:
    session_id: int
    topic: str
    difficulty: str
    is_correct: bool
    total_questions: int
    correct_answers: int


async def get_or_create_chat_session(db: AsyncSession, topic: str, session_id: int | None = None) -> int:
    if session_id is not None and await db.get(ChatSession, session_id) is not None:
        return session_id
    if session_id is not None:
        chat_logger.info("Chat session %s not found, starting a new one", session_id)
    new_id = (await db.execute(insert(ChatSession).values(topic=topic).returning(ChatSession.id))).scalar_one()
    await db.commit()
    return new_id


async def append_message(db: AsyncSession, session_id: int, role: str, content: str) -> None:
    db.add(ChatMessage(session_id=session_id, role=role, content=content))
    await db.commit()


async def complete_exchange(db: AsyncSession, session_id: int, response: str) -> None:
    """Store the assistant reply and count the user/assistant pair in one transaction."""
    db.add(ChatMessage(session_id=session_id, role="assistant", content=response))
    await db.execute(
        update(ChatSession)
        .where(ChatSession.id == session_id)
        .values(message_count=ChatSession.message_count + 2)
    )
    await db.commit()


async def chat_history(db: AsyncSession, session_id: int) -> list[dict]:
    rows = (
        await db.execute(
            select(ChatMessage.role, ChatMessage.content, ChatMessage.created_at)
            .where(ChatMessage.session_id == session_id)
            .order_by(ChatMessage.created_at, ChatMessage.id)
        )
    ).all()
    return [{"role": r.role, "content": r.content, "created_at": r.created_at} for r in rows]


async def get_or_create_quiz_session(db: AsyncSession, topic: str, session_id: int | None = None) -> int:
    if session_id is not None and await db.get(QuizSession, session_id) is not None:
        return session_id
    if session_id is not None:
        quiz_logger.info("Quiz session %s not found, starting a new one", session_id)
    new_id = (
        await db.execute(
            insert(QuizSession)
            .values(topic=topic, difficulty="medium", total_questions=0, correct_answers=0)
            .returning(QuizSession.id)
        )
    ).scalar_one()
    await db.commit()
    return new_id


async def set_quiz_difficulty(db: AsyncSession, session_id: int, difficulty: str) -> None:
    await db.execute(
        update(QuizSession).where(QuizSession.id == session_id).values(difficulty=normalize_difficulty(difficulty))
    )
    await db.commit()


async def record_quiz_answer(
    db: AsyncSession,
    session_id: int,
    *,
    question: str,
    user_answer: str,
    correct_answer: str,
    is_correct: bool,
) -> AnswerRecord:
    """
    Store one answer and bump the session counters atomically.

    The answer row and the counter update share a transaction; the UPDATE is relative and
    returns the post-update counters, so concurrent submits never lose an increment.
    Raises SessionNotFoundError when the quiz session does not exist.
    """
    session = await db.get(QuizSession, session_id)
    if session is None:
        raise SessionNotFoundError("quiz", session_id)
    topic, difficulty = session.topic, normalize_difficulty(session.difficulty)

    try:
        await db.execute(
            insert(QuizAnswer).values(
                session_id=session_id,
                question=question,
                user_answer=user_answer,
                correct_answer=correct_answer,
                is_correct=is_correct,
                difficulty=difficulty,
            )
        )
        counters = (
            await db.execute(
                update(QuizSession)
                .where(QuizSession.id == session_id)
                .values(
                    total_questions=QuizSession.total_questions + 1,
                    correct_answers=QuizSession.correct_answers + (1 if is_correct else 0),
                )
                .returning(QuizSession.total_questions, QuizSession.correct_answers)
            )
        ).one()
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    quiz_logger.info(
        json.dumps(
            {
                "type": "quiz_answer_recorded",
                "session_id": session_id,
                "topic": topic,
                "difficulty": difficulty,
                "is_correct": is_correct,
                "total_questions": counters.total_questions,
                "correct_answers": counters.correct_answers,
            }
        )
    )
    return AnswerRecord(
        session_id=session_id,
        topic=topic,
        difficulty=difficulty,
        is_correct=is_correct,
        total_questions=int(counters.total_questions),
        correct_answers=int(counters.correct_answers),
    )
