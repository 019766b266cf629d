"""
FastAPI application factory.
"""

import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import get_settings, validate_settings
from .core.database import init_db, close_db
from .core.errors import (
    DayFrameError,
    dayframe_exception_handler,
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from .api.router import router

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="DayFrame",
        description="Life logging with AI summaries, reports and chat",
        version="1.0.0",
        docs_url="/docs" if settings.env == "development" else None,
        redoc_url="/redoc" if settings.env == "development" else None,
    )

    # ── CORS ─────────────────────────────────────────────────────
    origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Error envelope ───────────────────────────────────────────
    app.add_exception_handler(DayFrameError, dayframe_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # ── Startup ──────────────────────────────────────────────────
    @app.on_event("startup")
    async def on_startup():
        logging.basicConfig(
            level=getattr(logging, settings.log_level.upper(), logging.INFO),
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
        logger.info("Starting DayFrame (env=%s)", settings.env)

        if settings.env == "development":
            validate_settings(settings)

        await init_db()

        from .core.flags import get_flags
        flags = get_flags()
        logger.info(
            "Flags: auth=%s chat=%s reports=%s embeddings=%s",
            flags.use_auth, flags.chat_enabled,
            flags.reports_enabled, flags.embeddings_enabled,
        )
        logger.info(
            "Models: summary=%s chat=%s fallback=%s embeddings=%s",
            settings.ai_model_summary, settings.ai_model_chat,
            settings.ai_model_fallback, settings.ai_model_embeddings,
        )

        logger.info("DayFrame is ready")

    # ── Shutdown ─────────────────────────────────────────────────
    @app.on_event("shutdown")
    async def on_shutdown():
        from .services.llm import close_client
        await close_client()
        await close_db()
        logger.info("DayFrame shut down")

    # ── Routes ───────────────────────────────────────────────────
    app.include_router(router)

    return app
