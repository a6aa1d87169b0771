from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., min_length=1, description="Student message")
    topic: str = Field(..., min_length=1, description="Session topic, e.g. 'Quadratic Equations'")
    session_id: int | None = Field(default=None, alias="sessionId")


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: int = Field(..., alias="sessionId")
    response: str
    relevant_content_used: bool = Field(..., alias="relevantContentUsed")


class ChatHistoryMessage(BaseModel):
    role: str
    content: str
    created_at: datetime | None = None


class ChatHistoryResponse(BaseModel):
    messages: list[ChatHistoryMessage]
