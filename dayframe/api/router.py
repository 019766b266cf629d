"""
Main API router. Mounts all sub-routers.
"""

from fastapi import APIRouter, Depends

from ..core.dependencies import require_feature

router = APIRouter()


# ── Health (no auth) ─────────────────────────────────────────────────

@router.get("/health")
async def health():
    return {"status": "ok", "service": "dayframe"}


# ── API routes (auth per handler) ────────────────────────────────────

from .activities import activities_router
from .chat import chat_router
from .cron import cron_router
from .embeddings import embeddings_router
from .profile import profile_router
from .reports import reports_router
from .summaries import summaries_router
from .translate import translate_router

router.include_router(activities_router, prefix="/api")
router.include_router(summaries_router, prefix="/api")
router.include_router(reports_router, prefix="/api", dependencies=[Depends(require_feature("reports"))])
router.include_router(chat_router, prefix="/api", dependencies=[Depends(require_feature("chat"))])
router.include_router(embeddings_router, prefix="/api", dependencies=[Depends(require_feature("embeddings"))])
router.include_router(translate_router, prefix="/api")
router.include_router(profile_router, prefix="/api")
# Cron authenticates with CRON_SECRET, not a user token.
router.include_router(cron_router, prefix="/api")
