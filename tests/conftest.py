"""
Shared pytest fixtures.

Uses an on-disk SQLite database (aiosqlite) so no Postgres is required for
tests. LLM calls are replaced per test by monkeypatching `dayframe.services.llm`.
"""
import asyncio
import os
import time

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_dayframe.db"
os.environ["SUPABASE_URL"] = "http://supabase.test"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["OPENROUTER_API_KEY"] = "test-openrouter-key"
os.environ["LLM_MAX_RETRIES"] = "0"
os.environ["EMBEDDING_DIMENSIONS"] = "8"
os.environ["ENV"] = "test"

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from dayframe.core.config import get_settings
from dayframe.core.database import Base, close_db, get_engine, get_session_factory
from dayframe.core.flags import get_flags
from dayframe.factory import create_app
from dayframe.models import *  # noqa: F401,F403  register tables
from dayframe.services import llm
from dayframe.services.llm import ChatCompletion, LLMUnavailableError

JWT_SECRET = "test-jwt-secret"
USER_ID = "11111111-1111-1111-1111-111111111111"
OTHER_USER_ID = "22222222-2222-2222-2222-222222222222"

SUMMARY_JSON = (
    '{"summary": "A focused day of writing.", "highlights": ["Finished draft"], '
    '"problems": [], "conclusion": "Steady progress.", "suggestions": ["Rest"]}'
)
REPORT_JSON = (
    '{"summary": "A steady period.", "patterns": ["Morning writing"], "trends": [], '
    '"key_observations": ["Consistent"], "conclusion": "Good.", "suggestions": []}'
)


async def _reset_tables():
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    await close_db()


def make_token(user_id: str = USER_ID, email: str = "user@example.com", **claims) -> str:
    payload = {
        "sub": user_id,
        "email": email,
        "role": "authenticated",
        "aud": "authenticated",
        "exp": int(time.time()) + 3600,
    }
    payload.update(claims)
    return jwt.encode(payload, JWT_SECRET, algorithm="HS256")


@pytest.fixture(autouse=True)
def reset_db():
    asyncio.run(_reset_tables())
    yield


@pytest.fixture(autouse=True)
def reset_config():
    get_settings.cache_clear()
    get_flags.cache_clear()
    yield
    get_settings.cache_clear()
    get_flags.cache_clear()


@pytest.fixture()
def set_env(monkeypatch):
    """Set environment variables and drop the cached settings/flags."""

    def _set(**values):
        for key, value in values.items():
            monkeypatch.setenv(key, str(value))
        get_settings.cache_clear()
        get_flags.cache_clear()

    return _set


@pytest.fixture()
def run_db():
    """Run `fn(session)` on a fresh session, commit, and return its result."""

    def _run(fn):
        async def _go():
            try:
                async with get_session_factory()() as db:
                    result = await fn(db)
                    await db.commit()
                    return result
            finally:
                await close_db()

        return asyncio.run(_go())

    return _run


@pytest.fixture()
def indexed(monkeypatch):
    """Capture background indexing jobs instead of running them."""
    calls = []

    async def _record(*args):
        calls.append(args)

    monkeypatch.setattr("dayframe.api.activities.index_content", _record)
    monkeypatch.setattr("dayframe.api.summaries.index_content", _record)
    return calls


@pytest.fixture()
def client(indexed):
    app = create_app()
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def auth_headers():
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture()
def other_headers():
    return {"Authorization": f"Bearer {make_token(OTHER_USER_ID, 'other@example.com')}"}


class FakeLLM:
    """Stands in for the gateway helpers; records prompts, returns canned output."""

    def __init__(self):
        self.summary_response = SUMMARY_JSON
        self.report_response = REPORT_JSON
        self.chat_response = "You wrote on March 4."
        self.embedding = [0.1] * 8
        self.fail_chat = False
        self.fail_summary = False
        self.fail_embedding = False
        self.calls = []

    async def generate_summary(self, prompt, system=""):
        self.calls.append(("summary", prompt, system))
        if self.fail_summary:
            raise LLMUnavailableError("AI service temporarily unavailable. Please try again later.")
        return ChatCompletion(id="gen-1", model="test/summary-model", content=self.summary_response,
                              usage={"total_tokens": 120})

    async def generate_report(self, prompt, system=""):
        self.calls.append(("report", prompt, system))
        return ChatCompletion(id="gen-2", model="test/summary-model", content=self.report_response,
                              usage={"total_tokens": 300})

    async def generate_chat_response(self, question, context, system=""):
        self.calls.append(("chat", question, context, system))
        if self.fail_chat:
            raise LLMUnavailableError("AI service temporarily unavailable. Please try again later.")
        return ChatCompletion(id="gen-3", model="test/chat-model", content=self.chat_response,
                              usage={"total_tokens": 80})

    async def generate_embedding(self, text):
        self.calls.append(("embedding", text))
        if self.fail_embedding:
            raise llm.LLMError("Failed to generate text embedding")
        return list(self.embedding)


@pytest.fixture()
def fake_llm(monkeypatch):
    fake = FakeLLM()
    for name in ("generate_summary", "generate_report", "generate_chat_response", "generate_embedding"):
        monkeypatch.setattr(llm, name, getattr(fake, name))
    return fake
