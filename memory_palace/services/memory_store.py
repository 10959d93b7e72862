"""
Persistence adapters for analysis results. The pipeline only needs save(); get() serves the API.
"""
import logging
import threading
import uuid
from typing import Callable

from sqlalchemy.orm import Session

from memory_palace.models.memory import Memory
from memory_palace.schemas.analysis import AnalysisResult

logger = logging.getLogger(__name__)


def memory_to_dict(m: Memory) -> dict:
    return {
        "id": str(m.id),
        "title": m.title,
        "mediaType": m.media_type,
        "extractedText": m.extracted_text,
        "summary": m.summary,
        "patterns": m.patterns or [],
        "formulas": m.formulas or [],
        "quiz": m.quiz or [],
        "numericals": m.numericals or [],
        "roadmap": m.roadmap or [],
        "diagram": m.diagram,
        "createdAt": m.created_at.isoformat() if m.created_at else None,
    }


class SqlAlchemyMemoryStore:
    """One short-lived session per call; safe to share across requests and threads."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def save(self, result: AnalysisResult, *, title: str, media_type: str, source_text: str) -> str:
        doc = result.to_document()
        db = self._session_factory()
        try:
            row = Memory(
                title=(title or "Untitled")[:512],
                media_type=media_type,
                extracted_text=source_text,
                summary=doc["summary"],
                patterns=doc["patterns"],
                formulas=doc["formulas"],
                quiz=doc["quiz"],
                numericals=doc["numericals"],
                roadmap=doc["roadmap"],
                diagram=doc["diagram"],
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return str(row.id)
        except Exception:
            db.rollback()
            logger.exception("Failed to store memory %r", title)
            raise
        finally:
            db.close()

    def get(self, memory_id: str) -> dict | None:
        try:
            key = uuid.UUID(str(memory_id))
        except ValueError:
            return None
        db = self._session_factory()
        try:
            row = db.query(Memory).filter(Memory.id == key).first()
            return memory_to_dict(row) if row else None
        finally:
            db.close()


class InMemoryStore:
    """Dict-backed store for tests and local runs without a database."""

    def __init__(self):
        self._items: dict[str, dict] = {}
        self._lock = threading.Lock()

    def save(self, result: AnalysisResult, *, title: str, media_type: str, source_text: str) -> str:
        memory_id = str(uuid.uuid4())
        item = {"id": memory_id, "title": title, "mediaType": media_type, "extractedText": source_text}
        item.update(result.to_document())
        with self._lock:
            self._items[memory_id] = item
        return memory_id

    def get(self, memory_id: str) -> dict | None:
        with self._lock:
            item = self._items.get(str(memory_id))
            return dict(item) if item else None
