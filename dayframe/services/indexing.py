"""
Embedding ingestion for chat retrieval.

Route handlers schedule `index_content` as a FastAPI background task after
the response is sent, so it opens its own session.
"""

import logging
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_session_factory
from ..core.flags import get_flags
from ..models.embedding import ChatEmbedding
from . import crud, llm

logger = logging.getLogger(__name__)

CONTENT_TYPES = ("activity", "summary", "report")


async def embed_and_store(
    db: AsyncSession,
    user_id: str,
    content_type: str,
    content_id: str,
    content_text: str,
    content_date: date,
) -> ChatEmbedding:
    embedding = await llm.generate_embedding(content_text)
    return await crud.upsert_embedding(
        db,
        user_id,
        content_type,
        content_id,
        content_text,
        content_date,
        embedding,
    )


async def index_content(
    user_id: str,
    content_type: str,
    content_id: str,
    content_text: str,
    content_date: date,
) -> None:
    if not get_flags().embeddings_enabled:
        return
    if not content_text or not content_text.strip():
        return

    factory = get_session_factory()
    async with factory() as db:
        try:
            await embed_and_store(db, user_id, content_type, content_id, content_text, content_date)
            await db.commit()
            logger.info("Indexed %s %s", content_type, content_id)
        except Exception as e:
            await db.rollback()
            logger.warning("Indexing %s %s failed: %s", content_type, content_id, e)
