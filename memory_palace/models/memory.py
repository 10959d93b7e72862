"""
Memory: one analyzed source (PDF, video transcript or pasted text) and everything generated from it.
List-valued sections are JSON columns holding the camelCase documents from AnalysisResult.to_document().
"""
import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from memory_palace.database import Base
from memory_palace.models.types import UuidType


class Memory(Base):
    __tablename__ = "memories"

    id: Mapped[uuid.UUID] = mapped_column(UuidType(), primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    media_type: Mapped[str] = mapped_column(String(20), nullable=False)  # pdf | video | text
    extracted_text: Mapped[str] = mapped_column(Text, nullable=False)
    summary: Mapped[str] = mapped_column(Text, nullable=False, default="")
    patterns: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    formulas: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    quiz: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    numericals: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    roadmap: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    diagram: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("media_type IN ('pdf', 'video', 'text')", name="memories_media_type_check"),
    )
