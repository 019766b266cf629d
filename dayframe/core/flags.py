"""
Central feature flags. One file controls every optional feature.

Set via environment variables (prefix FF_) or .env file.
When a flag is OFF, the matching routes answer 404 and background work is skipped.
"""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FeatureFlags(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ── Auth ─────────────────────────────────────────────────────────
    use_auth: bool = Field(default=True, alias="FF_USE_AUTH")
    # ON  → Supabase access token validated with SUPABASE_JWT_SECRET.
    # OFF → Dev user injected (user_id="dev-user"). No token needed.

    # ── Chat ─────────────────────────────────────────────────────────
    chat_enabled: bool = Field(default=True, alias="FF_CHAT_ENABLED")
    # OFF → /api/chat and /api/chat/history answer 404.

    # ── Reports ──────────────────────────────────────────────────────
    reports_enabled: bool = Field(default=True, alias="FF_REPORTS_ENABLED")
    # OFF → /api/reports answers 404.

    # ── Embeddings ───────────────────────────────────────────────────
    embeddings_enabled: bool = Field(default=True, alias="FF_EMBEDDINGS_ENABLED")
    # OFF → /api/embeddings/* answer 404 and new content is not indexed.
    #       Chat still works from the recent-activity fallback.


@lru_cache
def get_flags() -> FeatureFlags:
    return FeatureFlags()
