"""
Chat API.

POST   /api/chat            Ask a question about your own logs
DELETE /api/chat?id=...     Delete one history entry
GET    /api/chat/history    Past questions and answers, newest first
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import AuthenticatedUser
from ..core.dependencies import get_db, get_user
from ..core.errors import DayFrameError
from ..services import crud
from ..services.chat import answer_question

logger = logging.getLogger(__name__)

chat_router = APIRouter(prefix="/chat", tags=["chat"])


class ChatRequest(BaseModel):
    question: str = Field(..., min_length=1, max_length=2000)

    @field_validator("question")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Question required")
        return v


class ChatResponse(BaseModel):
    answer: str
    contextCount: int
    contextSource: str
    fallback: bool


@chat_router.post("", response_model=ChatResponse)
async def chat(
    req: ChatRequest,
    user: AuthenticatedUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        result = await answer_question(db, user.user_id, req.question, date.today())
    except DayFrameError:
        raise
    except Exception as e:
        logger.error("Chat failed for user %s: %s", user.user_id, e)
        raise DayFrameError("Failed to generate response")

    return ChatResponse(
        answer=result.answer,
        contextCount=result.context_count,
        contextSource=result.context_source,
        fallback=result.fallback,
    )


@chat_router.delete("")
async def delete_chat(
    chat_id: str = Query(..., alias="id"),
    user: AuthenticatedUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    await crud.delete_chat_message(db, user.user_id, chat_id)
    return {"success": True}


@chat_router.get("/history")
async def chat_history(
    limit: int = Query(50, ge=1, le=200),
    user: AuthenticatedUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    history = await crud.get_chat_history(db, user.user_id, limit)
    return [h.to_dict() for h in history]
