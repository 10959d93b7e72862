"""
Shared dependencies. The orchestrator and store are built once at startup and kept on app.state;
tests swap them via app.dependency_overrides.
"""
from fastapi import Request

from memory_palace.services.analysis_pipeline import PipelineOrchestrator


def get_orchestrator(request: Request) -> PipelineOrchestrator:
    return request.app.state.orchestrator


def get_store(request: Request):
    return request.app.state.store
