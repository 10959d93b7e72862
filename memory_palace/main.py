"""
FastAPI application entrypoint.
Run with: uvicorn memory_palace.main:app --reload --port 8000

  - Memories: POST /memories, GET /memories/{id}, POST /memories/{id}/quiz
  - Health:   GET /health
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from memory_palace import metrics
from memory_palace.api.memories import router as memories_router
from memory_palace.config import settings

app = FastAPI(
    title="Memory Palace API",
    description="Extracted study text -> summary, quiz, formulas, numerical sets, roadmap.",
    version="0.1.0",
)

_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins if _origins else ["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(memories_router)


@app.on_event("startup")
def startup():
    """Init DB, load the backend order once, and build the shared orchestrator."""
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    _log = logging.getLogger("memory_palace.main")
    from memory_palace.database import SessionLocal, init_db
    from memory_palace.llm import build_executor, load_cascade_config
    from memory_palace.services.analysis_pipeline import PipelineOrchestrator
    from memory_palace.services.memory_store import SqlAlchemyMemoryStore

    init_db()
    cascade_config = load_cascade_config(settings)
    executor = build_executor(cascade_config)
    _log.info("Backend cascade: %s (timeout %.0fs per attempt)", ", ".join(executor.backend_names), executor.config.attempt_timeout_seconds)
    store = SqlAlchemyMemoryStore(SessionLocal)
    app.state.store = store
    app.state.executor = executor
    app.state.orchestrator = PipelineOrchestrator(
        executor,
        store,
        min_source_chars=settings.min_source_chars,
        max_source_chars=settings.max_source_chars,
        retry_attempts=settings.pipeline_retry_attempts,
        retry_max_wait=settings.pipeline_retry_max_wait_seconds,
    )


@app.on_event("shutdown")
def shutdown():
    executor = getattr(app.state, "executor", None)
    if executor is not None:
        executor.shutdown()


@app.get("/health")
def health():
    """Health check (JSON) with in-process counters."""
    return {"status": "ok", "message": "Memory Palace API", "metrics": metrics.snapshot()}
