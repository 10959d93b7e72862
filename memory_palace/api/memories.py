"""
Memories API: analyze extracted text into a stored memory, fetch it, regenerate its quiz.
Pipeline failures are translated to HTTP here: 400 empty source, 502 unusable model output, 503 no backend answered.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from memory_palace.api.deps import get_orchestrator, get_store
from memory_palace.config import settings
from memory_palace.errors import (
    AllBackendsExhausted,
    EmptySourceText,
    NoStructuredPayload,
    PipelineError,
    UnrecoverablePayload,
)
from memory_palace.schemas.memory import (
    ErrorDetail,
    MemoryCreateRequest,
    MemoryCreateResponse,
    QuizRegenerateRequest,
    QuizResponse,
)
from memory_palace.services.analysis_pipeline import PipelineOrchestrator

router = APIRouter(prefix="/memories", tags=["memories"])
logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = {
    EmptySourceText: status.HTTP_400_BAD_REQUEST,
    NoStructuredPayload: status.HTTP_502_BAD_GATEWAY,
    UnrecoverablePayload: status.HTTP_502_BAD_GATEWAY,
    AllBackendsExhausted: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def pipeline_http_error(e: PipelineError) -> HTTPException:
    code = _STATUS_BY_ERROR.get(type(e), status.HTTP_500_INTERNAL_SERVER_ERROR)
    return HTTPException(status_code=code, detail=ErrorDetail(kind=e.kind, message=str(e)).model_dump())


@router.post("", response_model=MemoryCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_memory(
    data: MemoryCreateRequest,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
):
    """Analyze already-extracted text and persist the result."""
    outcome = await orchestrator.run(data.extracted_text, title=data.title, media_type=data.media_type)
    if not outcome.ok:
        raise pipeline_http_error(outcome.error)
    return MemoryCreateResponse(id=outcome.memory_id, backend=outcome.backend, result=outcome.result.to_document())


@router.get("/{memory_id}")
def get_memory(memory_id: str, store=Depends(get_store)):
    memory = store.get(memory_id)
    if not memory:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Memory not found")
    return memory


@router.post("/{memory_id}/quiz", response_model=QuizResponse)
async def regenerate_quiz(
    memory_id: str,
    data: QuizRegenerateRequest | None = None,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
    store=Depends(get_store),
):
    """New quiz questions from the memory's stored text. Not persisted."""
    memory = store.get(memory_id)
    if not memory:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Memory not found")
    count = (data.count if data and data.count else None) or settings.quiz_question_count
    try:
        questions = await orchestrator.regenerate_quiz(memory.get("extractedText") or "", count=count)
    except PipelineError as e:
        logger.warning("regenerate_quiz failed for memory %s (%s): %s", memory_id, e.kind, e)
        raise pipeline_http_error(e) from e
    return QuizResponse(questions=[q.model_dump(by_alias=True, mode="json") for q in questions])
