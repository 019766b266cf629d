"""
Translate a stored summary or report into another language, keys untouched.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from ..core.auth import AuthenticatedUser
from ..core.dependencies import get_user
from ..core.errors import DayFrameError, ValidationError
from ..services import llm
from ..services.prompts import (
    AIResponseParseError,
    create_translation_prompt,
    parse_ai_json_response,
    translation_system_prompt,
)

logger = logging.getLogger(__name__)

translate_router = APIRouter(tags=["translate"])


class TranslateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: Any
    target_language: str = Field(..., min_length=1, alias="targetLanguage")


@translate_router.post("/translate")
async def translate(
    req: TranslateRequest,
    user: AuthenticatedUser = Depends(get_user),
):
    if not req.content:
        raise ValidationError("Content and target language required")

    try:
        completion = await llm.generate_chat_response(
            create_translation_prompt(req.content, req.target_language),
            "",
            translation_system_prompt(req.target_language),
        )
    except Exception as e:
        logger.error("Translation to %s failed: %s", req.target_language, e)
        raise DayFrameError("Failed to translate content")

    try:
        translated = parse_ai_json_response(completion.content)
    except AIResponseParseError:
        raise DayFrameError("Failed to parse translation")

    return {"translatedContent": translated}
