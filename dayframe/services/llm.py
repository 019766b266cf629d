"""
LLM gateway client (OpenRouter, OpenAI-compatible).

Features:
  - Retry with exponential backoff + jitter (handles 429, 500, 502, 503, 504)
  - Model router: per-task primary model → shared fallback model
  - Embeddings endpoint
  - Reusable client (connection pooling)
  - Structured logging
"""

import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Optional, Union

import httpx

from ..core.config import get_settings

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """The gateway rejected a request or returned something unusable."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class LLMUnavailableError(LLMError):
    """Both the primary and the fallback model failed."""


@dataclass
class ChatCompletion:
    id: str
    model: str
    content: str
    usage: dict = field(default_factory=dict)


# ── Reusable client (connection pool) ────────────────────────────────

_client: Optional[httpx.AsyncClient] = None


def _get_client() -> httpx.AsyncClient:
    global _client
    if _client is None or _client.is_closed:
        _client = httpx.AsyncClient(
            timeout=httpx.Timeout(connect=10, read=120, write=30, pool=10),
            limits=httpx.Limits(max_connections=50, max_keepalive_connections=20),
        )
    return _client


async def close_client():
    """Close the shared HTTP client. Call on app shutdown."""
    global _client
    if _client and not _client.is_closed:
        await _client.aclose()
        _client = None


def _headers() -> dict[str, str]:
    settings = get_settings()
    if not settings.openrouter_api_key:
        raise LLMError("No API key for the LLM gateway. Set OPENROUTER_API_KEY.")
    return {
        "Authorization": f"Bearer {settings.openrouter_api_key}",
        "Content-Type": "application/json",
        "HTTP-Referer": settings.referer_url,
        "X-Title": settings.openrouter_app_name,
    }


def _url(path: str) -> str:
    return f"{get_settings().openrouter_base_url.rstrip('/')}/{path}"


# ── Retry logic ──────────────────────────────────────────────────────

RETRYABLE_STATUS = {429, 500, 502, 503, 504}
BASE_DELAY = 1.0
MAX_DELAY = 16.0


def _error_message(resp: httpx.Response) -> str:
    try:
        return resp.json().get("error", {}).get("message") or resp.reason_phrase
    except (ValueError, AttributeError):
        return resp.reason_phrase


def _backoff(attempt: int) -> float:
    return min(MAX_DELAY, BASE_DELAY * (2 ** attempt) + random.uniform(0, 1))


def _retry_delay(retry_after: Optional[str], attempt: int) -> float:
    """Seconds to wait before the next attempt, capped at MAX_DELAY.

    Only the delta-seconds form of Retry-After is honoured; an HTTP-date or
    garbage falls back to exponential backoff.
    """
    if retry_after:
        try:
            return min(MAX_DELAY, max(0.0, float(retry_after)))
        except ValueError:
            pass
    return _backoff(attempt)


async def _retry_request(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    **kwargs,
) -> httpx.Response:
    """Execute request with exponential backoff + jitter."""
    max_retries = max(0, get_settings().llm_max_retries)
    last_exc: Optional[Exception] = None

    for attempt in range(max_retries + 1):
        try:
            resp = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            last_exc = LLMError(f"LLM gateway timeout: {e}")
            if attempt < max_retries:
                delay = _backoff(attempt)
                logger.warning(
                    "LLM timeout (attempt %d/%d), retrying in %.1fs",
                    attempt + 1, max_retries + 1, delay,
                )
                await asyncio.sleep(delay)
            continue

        if resp.status_code < 400:
            return resp

        message = f"LLM gateway error: {resp.status_code} - {_error_message(resp)}"
        last_exc = LLMError(message, status_code=resp.status_code)

        if resp.status_code not in RETRYABLE_STATUS:
            logger.error("%s", message)
            raise last_exc

        if attempt < max_retries:
            delay = _retry_delay(resp.headers.get("retry-after"), attempt)
            logger.warning(
                "LLM %d (attempt %d/%d), retrying in %.1fs",
                resp.status_code, attempt + 1, max_retries + 1, delay,
            )
            await asyncio.sleep(delay)

    raise last_exc or LLMError("LLM request failed after retries")


# ── Chat completions ─────────────────────────────────────────────────

async def chat_completion(
    messages: list[dict],
    model: str,
    temperature: float = 0.7,
    max_tokens: int = 2000,
) -> ChatCompletion:
    """Single chat completion against one model. Raises LLMError on failure."""
    payload: dict[str, Any] = {
        "model": model,
        "messages": messages,
        "temperature": temperature,
        "max_tokens": max_tokens,
        "stream": False,
    }

    start = time.monotonic()
    resp = await _retry_request(
        _get_client(), "POST", _url("chat/completions"), json=payload, headers=_headers(),
    )
    data = resp.json()
    elapsed = time.monotonic() - start

    try:
        content = data["choices"][0]["message"]["content"] or ""
    except (KeyError, IndexError, TypeError):
        raise LLMError(f"Malformed completion from model {model}")

    usage = data.get("usage") or {}
    logger.info(
        "LLM chat: %dms | in=%d out=%d tokens | model=%s",
        int(elapsed * 1000),
        usage.get("prompt_tokens", 0),
        usage.get("completion_tokens", 0),
        data.get("model", model),
    )
    return ChatCompletion(
        id=data.get("id", ""),
        model=data.get("model", model),
        content=content,
        usage={
            "prompt_tokens": usage.get("prompt_tokens", 0),
            "completion_tokens": usage.get("completion_tokens", 0),
            "total_tokens": usage.get("total_tokens", 0),
        },
    )


# ── Embeddings ───────────────────────────────────────────────────────

async def create_embedding(
    input: Union[str, list[str]],
    model: Optional[str] = None,
) -> list[list[float]]:
    """Embed one text or a batch. Returns one vector per input, in order."""
    payload = {
        "model": model or get_settings().ai_model_embeddings,
        "input": input,
    }

    start = time.monotonic()
    resp = await _retry_request(
        _get_client(), "POST", _url("embeddings"), json=payload, headers=_headers(),
    )
    data = resp.json()
    items = sorted(data.get("data", []), key=lambda item: item.get("index", 0))
    logger.info(
        "LLM embeddings: %dms | n=%d | model=%s",
        int((time.monotonic() - start) * 1000), len(items), payload["model"],
    )
    return [item["embedding"] for item in items]


# ── Model router ─────────────────────────────────────────────────────

TASK_TYPES = ("summary", "report", "chat")


def primary_model(task_type: str) -> str:
    settings = get_settings()
    if task_type in ("summary", "report"):
        return settings.ai_model_summary
    if task_type == "chat":
        return settings.ai_model_chat
    return settings.ai_model_fallback


async def execute(
    task_type: str,
    messages: list[dict],
    temperature: float = 0.7,
    max_tokens: int = 2000,
) -> ChatCompletion:
    """
    Run a chat completion on the task's primary model, then once on the
    fallback model. Raises LLMUnavailableError when both fail.
    """
    primary = primary_model(task_type)
    fallback = get_settings().ai_model_fallback

    try:
        return await chat_completion(messages, primary, temperature, max_tokens)
    except Exception as primary_error:
        logger.error("Primary model %s failed: %s", primary, primary_error)

    if fallback == primary:
        raise LLMUnavailableError("AI service temporarily unavailable. Please try again later.")

    try:
        logger.warning("Falling back to %s", fallback)
        return await chat_completion(messages, fallback, temperature, max_tokens)
    except Exception as fallback_error:
        logger.error("Fallback model %s failed: %s", fallback, fallback_error)
        raise LLMUnavailableError("AI service temporarily unavailable. Please try again later.")


# ── Convenience functions ────────────────────────────────────────────

def _messages(prompt: str, system: str = "") -> list[dict]:
    messages = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})
    return messages


async def generate_summary(prompt: str, system: str = "") -> ChatCompletion:
    return await execute("summary", _messages(prompt, system), temperature=0.7, max_tokens=2000)


async def generate_report(prompt: str, system: str = "") -> ChatCompletion:
    return await execute("report", _messages(prompt, system), temperature=0.7, max_tokens=3000)


async def generate_chat_response(question: str, context: str, system: str = "") -> ChatCompletion:
    prompt = f"Context:\n{context}\n\nUser Question:\n{question}" if context else question
    return await execute("chat", _messages(prompt, system), temperature=0.5, max_tokens=1500)


async def generate_embedding(text: str) -> list[float]:
    try:
        vectors = await create_embedding(text)
    except Exception as e:
        logger.error("Embedding generation failed: %s", e)
        raise LLMError("Failed to generate text embedding")
    if not vectors:
        raise LLMError("Failed to generate text embedding")
    return vectors[0]


async def generate_embeddings(texts: list[str]) -> list[list[float]]:
    try:
        return await create_embedding(texts)
    except Exception as e:
        logger.error("Batch embedding generation failed: %s", e)
        raise LLMError("Failed to generate text embeddings")
