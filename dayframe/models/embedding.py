"""
Embeddings of activities, summaries and reports for chat retrieval.

Similarity search runs in the database through the `match_embeddings`
SQL function; this table only stores the vectors.
"""

from datetime import date

from pgvector.sqlalchemy import Vector
from sqlalchemy import Date, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ..core.config import get_settings
from .base import UserOwnedBase


class ChatEmbedding(UserOwnedBase):
    __tablename__ = "chat_embeddings"
    __table_args__ = (
        UniqueConstraint("content_type", "content_id", name="uq_chat_embeddings_content"),
    )

    content_type: Mapped[str] = mapped_column(String(16), nullable=False)  # activity, summary, report
    content_id: Mapped[str] = mapped_column(String, nullable=False)
    content_text: Mapped[str] = mapped_column(Text, nullable=False)
    content_date: Mapped[date] = mapped_column(Date, nullable=False)
    embedding = mapped_column(Vector(get_settings().embedding_dimensions), nullable=True)

    def to_dict(self) -> dict:
        out = super().to_dict()
        out.pop("embedding", None)
        return out
