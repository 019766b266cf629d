"""
Embeddings API.

POST /api/embeddings/generate   Embed and store one piece of content
POST /api/embeddings/search     Similarity search over stored content
"""

import logging
from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import AuthenticatedUser
from ..core.dependencies import get_db, get_user
from ..core.errors import DayFrameError
from ..services import crud, llm
from ..services.indexing import embed_and_store

logger = logging.getLogger(__name__)

embeddings_router = APIRouter(prefix="/embeddings", tags=["embeddings"])


class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content_type: Literal["activity", "summary", "report"] = Field(..., alias="contentType")
    content_id: str = Field(..., min_length=1, alias="contentId")
    content_text: str = Field(..., min_length=1, alias="contentText")
    content_date: date = Field(..., alias="contentDate")


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1)
    threshold: float = Field(0.5, ge=0.0, le=1.0)
    limit: int = Field(10, ge=1, le=50)


@embeddings_router.post("/generate", status_code=201)
async def generate_embedding(
    req: GenerateRequest,
    user: AuthenticatedUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        await embed_and_store(
            db, user.user_id, req.content_type, req.content_id, req.content_text, req.content_date,
        )
    except DayFrameError:
        raise
    except Exception as e:
        logger.error("Embedding %s %s failed: %s", req.content_type, req.content_id, e)
        raise DayFrameError("Failed to generate embedding")
    return {"success": True}


@embeddings_router.post("/search")
async def search_embeddings(
    req: SearchRequest,
    user: AuthenticatedUser = Depends(get_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        query_embedding = await llm.generate_embedding(req.query)
        return await crud.search_similar_content(
            db, user.user_id, query_embedding, req.threshold, req.limit,
        )
    except Exception as e:
        logger.error("Embedding search failed: %s", e)
        raise DayFrameError("Search failed")
