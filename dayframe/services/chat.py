"""
Chat over the user's own logs: retrieve, then generate.

Fallback chain:
  1. question embedding + `match_embeddings` (vector search)
  2. most recent activities and daily summaries straight from the tables
  3. if the LLM fails, a rule-based answer built from the same context

The question/answer pair is always written to chat_history.
"""

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import get_settings
from . import crud, llm
from .fallback import build_fallback_answer
from .periods import clock_time
from .prompts import CHAT_AGENT_SYSTEM_PROMPT, create_chat_prompt
from .summaries import summary_text

logger = logging.getLogger(__name__)

FALLBACK_MODEL_NAME = "fallback"


@dataclass
class ChatAnswer:
    id: str
    answer: str
    context_count: int
    context_source: str
    fallback: bool
    ai_model: str


async def _vector_context(db: AsyncSession, user_id: str, question: str) -> list[dict]:
    settings = get_settings()
    query_embedding = await llm.generate_embedding(question)
    matches = await crud.search_similar_content(
        db,
        user_id,
        query_embedding,
        threshold=settings.chat_match_threshold,
        limit=settings.chat_match_count,
    )
    return [
        {
            "id": m["content_id"],
            "type": m["content_type"],
            "date": m["content_date"],
            "content": m["content_text"],
        }
        for m in matches
    ]


async def _recent_context(db: AsyncSession, user_id: str) -> list[dict]:
    settings = get_settings()
    activities = await crud.get_recent_activities(db, user_id, settings.chat_fallback_activities)
    summaries = await crud.get_recent_daily_summaries(db, user_id, settings.chat_fallback_summaries)

    context = [
        {
            "id": s.id,
            "type": "summary",
            "date": s.summary_date.isoformat(),
            "content": summary_text(s.content),
        }
        for s in summaries
    ]
    context.extend(
        {
            "id": a.id,
            "type": "activity",
            "date": a.activity_date.isoformat(),
            "content": f"[{clock_time(a.activity_timestamp)}] {a.content}",
        }
        for a in activities
    )
    return context


async def retrieve_context(db: AsyncSession, user_id: str, question: str) -> tuple[list[dict], str]:
    """Returns (context items, source) where source is vector, recent or none."""
    try:
        context = await _vector_context(db, user_id, question)
    except Exception as e:
        logger.warning("Vector search unavailable, using recent entries: %s", e)
        # A failed statement poisons the transaction on Postgres.
        await db.rollback()
        context = []

    if context:
        return context, "vector"

    context = await _recent_context(db, user_id)
    return context, "recent" if context else "none"


async def answer_question(
    db: AsyncSession,
    user_id: str,
    question: str,
    today: date,
) -> ChatAnswer:
    context, source = await retrieve_context(db, user_id, question)
    prompt = create_chat_prompt(question, context)

    try:
        # The built prompt goes in the context slot, so the question appears twice: once
        # inside the prompt's instructions and once as the trailing "User Question".
        completion = await llm.generate_chat_response(question, prompt, CHAT_AGENT_SYSTEM_PROMPT)
        answer, model, used_fallback = completion.content, completion.model, False
    except Exception as e:
        logger.warning("Chat model unavailable, answering from rules: %s", e)
        answer = build_fallback_answer(question, context, today)
        model, used_fallback = FALLBACK_MODEL_NAME, True

    entry = await crud.save_chat_history(
        db,
        user_id,
        question,
        answer,
        context_used={
            "query": question,
            "resultsCount": len(context),
            "contentIds": [item["id"] for item in context],
            "source": source,
            "fallback": used_fallback,
        },
        ai_model=model,
    )
    logger.info(
        "Chat answered: user=%s source=%s context=%d fallback=%s",
        user_id, source, len(context), used_fallback,
    )

    return ChatAnswer(
        id=entry.id,
        answer=answer,
        context_count=len(context),
        context_source=source,
        fallback=used_fallback,
        ai_model=model,
    )
