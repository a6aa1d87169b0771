import json

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from tutor.agents.adaptation import next_difficulty
from tutor.agents.assessment import assess_submission, grade_answer
from tutor.agents.quiz_generator import QuizGenerationAgent
from tutor.core.errors import SessionNotFoundError
from tutor.core.logging import DOMAIN_QUIZ, get_domain_logger
from tutor.core.settings import settings
from tutor.memory.context import load_quiz_context, with_difficulty
from tutor.memory.database import get_db
from tutor.memory.tracker import get_or_create_quiz_session, record_quiz_answer, set_quiz_difficulty
from tutor.rag.retriever import retrieve_relevant_content
from tutor.schemas.quiz import (
    QuizContextOut,
    QuizGenerateRequest,
    QuizGenerateResponse,
    QuizQuestionOut,
    QuizSubmitRequest,
    QuizSubmitResponse,
)

router = APIRouter(prefix="/api/quiz", tags=["quiz"])
logger = get_domain_logger(__name__, DOMAIN_QUIZ)

quiz_agent = QuizGenerationAgent()


@router.post("/generate", response_model=QuizGenerateResponse)
async def generate(payload: QuizGenerateRequest, db: AsyncSession = Depends(get_db)):
    topic = payload.topic
    try:
        session_id = await get_or_create_quiz_session(db, topic, payload.session_id)
        context = await load_quiz_context(db, session_id, topic)

        difficulty = next_difficulty(context.consecutive_correct, context.consecutive_wrong, context.current_difficulty)
        if difficulty != context.current_difficulty:
            logger.info(
                json.dumps(
                    {
                        "type": "difficulty_transition",
                        "session_id": session_id,
                        "topic": topic,
                        "from_difficulty": context.current_difficulty,
                        "to_difficulty": difficulty,
                        "consecutive_correct": context.consecutive_correct,
                        "consecutive_wrong": context.consecutive_wrong,
                    }
                )
            )
        await set_quiz_difficulty(db, session_id, difficulty)

        retrieved = await retrieve_relevant_content(
            db,
            f"Generate a {difficulty} question about {topic}",
            topic,
            settings.quiz_retrieval_top_k,
        )
        result = await quiz_agent.run({"context": with_difficulty(context, difficulty), "retrieved": retrieved})
    except Exception as exc:
        logger.exception("Quiz generation failed for topic %s: %s", topic, exc)
        raise HTTPException(status_code=500, detail="Failed to generate adaptive quiz") from exc

    question = result["question"]
    return QuizGenerateResponse(
        session_id=session_id,
        question=QuizQuestionOut(
            question=question.question,
            options=question.options,
            correct_answer=question.correct_answer,
            explanation=question.explanation,
            difficulty=question.difficulty,
        ),
        difficulty=difficulty,
        context=QuizContextOut(
            mastery=context.mastery,
            consecutive_correct=context.consecutive_correct,
            consecutive_wrong=context.consecutive_wrong,
        ),
    )


@router.post("/submit", response_model=QuizSubmitResponse)
async def submit(payload: QuizSubmitRequest, db: AsyncSession = Depends(get_db)):
    is_correct = grade_answer(payload.user_answer, payload.correct_answer)
    try:
        record = await record_quiz_answer(
            db,
            payload.session_id,
            question=payload.question,
            user_answer=payload.user_answer,
            correct_answer=payload.correct_answer,
            is_correct=is_correct,
        )
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Quiz session not found") from exc
    except Exception as exc:
        logger.exception("Answer submission failed for session %s: %s", payload.session_id, exc)
        raise HTTPException(status_code=500, detail="Failed to submit answer") from exc

    assessment = assess_submission(
        is_correct=is_correct,
        correct=record.correct_answers,
        total=record.total_questions,
        difficulty=record.difficulty,
    )
    return QuizSubmitResponse(
        is_correct=is_correct,
        message=assessment["message"],
        accuracy=assessment["accuracy"],
        total_questions=record.total_questions,
        correct_answers=record.correct_answers,
        next_difficulty_hint=assessment["next_difficulty_hint"],
    )
