import json

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from tutor.agents.tutor import TutorAgent
from tutor.core.logging import DOMAIN_CHAT, get_domain_logger
from tutor.memory.context import load_chat_context
from tutor.memory.database import get_db
from tutor.memory.tracker import append_message, chat_history, complete_exchange, get_or_create_chat_session
from tutor.rag.retriever import retrieve_relevant_content
from tutor.schemas.chat import ChatHistoryResponse, ChatRequest, ChatResponse

router = APIRouter(prefix="/api/chat", tags=["chat"])
logger = get_domain_logger(__name__, DOMAIN_CHAT)

tutor_agent = TutorAgent()


@router.post("", response_model=ChatResponse)
async def chat(payload: ChatRequest, db: AsyncSession = Depends(get_db)):
    try:
        session_id = await get_or_create_chat_session(db, payload.topic, payload.session_id)
        await append_message(db, session_id, "user", payload.message)

        retrieved = await retrieve_relevant_content(db, payload.message, payload.topic)
        context = await load_chat_context(db, session_id, payload.topic)
        result = await tutor_agent.run({"message": payload.message, "context": context, "retrieved": retrieved})

        await complete_exchange(db, session_id, result["response"])
    except Exception as exc:
        logger.exception("Chat request failed for topic %s: %s", payload.topic, exc)
        raise HTTPException(status_code=500, detail="Failed to process message") from exc

    logger.info(
        json.dumps(
            {
                "type": "chat_exchange",
                "session_id": session_id,
                "topic": payload.topic,
                "difficulty": context.current_difficulty,
                "mastery": context.mastery,
                "relevant_content_used": result["relevant_content_used"],
            }
        )
    )
    return ChatResponse(
        session_id=session_id,
        response=result["response"],
        relevant_content_used=result["relevant_content_used"],
    )


@router.get("/history/{session_id}", response_model=ChatHistoryResponse)
async def history(session_id: int, db: AsyncSession = Depends(get_db)):
    try:
        messages = await chat_history(db, session_id)
    except Exception as exc:
        logger.exception("History lookup failed for session %s: %s", session_id, exc)
        raise HTTPException(status_code=500, detail="Failed to fetch history") from exc
    return ChatHistoryResponse(messages=messages)
