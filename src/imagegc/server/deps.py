"""
FastAPI dependencies for the analysis API.
"""

from fastapi import Request

from imagegc.core.pipeline import PipelineOrchestrator


def get_orchestrator(request: Request) -> PipelineOrchestrator:
    """Return the orchestrator built once at app creation."""
    return request.app.state.orchestrator
