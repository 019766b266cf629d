"""
Chat history. Append-only log of questions and answers.
"""

from sqlalchemy import JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import UserOwnedBase


class ChatHistory(UserOwnedBase):
    __tablename__ = "chat_history"

    question: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str] = mapped_column(Text, nullable=False)
    context_used: Mapped[dict] = mapped_column(JSON, nullable=True, default=dict)
    # {query, resultsCount, contentIds, source, fallback}
    ai_model: Mapped[str] = mapped_column(String, nullable=False)
