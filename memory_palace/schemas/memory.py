"""
Memory request/response schemas.
"""
from typing import Literal

from pydantic import BaseModel, Field


class MemoryCreateRequest(BaseModel):
    title: str = Field(default="Untitled", max_length=512)
    media_type: Literal["pdf", "video", "text"] = "text"
    extracted_text: str


class MemoryCreateResponse(BaseModel):
    id: str | None
    backend: str | None = None
    result: dict


class QuizRegenerateRequest(BaseModel):
    count: int | None = Field(default=None, ge=1, le=20)


class QuizResponse(BaseModel):
    questions: list[dict]


class ErrorDetail(BaseModel):
    kind: str
    message: str
