"""
Image analysis router: POST /api/imageanalysis/analyze.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from imagegc.core.models import AnalysisRequest
from imagegc.core.pipeline import PipelineOrchestrator
from imagegc.logging_config import get_logger
from imagegc.server.deps import get_orchestrator

logger = get_logger(__name__)

router = APIRouter(prefix="/api/imageanalysis", tags=["imageanalysis"])

GENERIC_ERROR = "An unexpected error occurred while processing the image."


@router.post("/analyze")
def analyze_image(
    req: AnalysisRequest,
    orchestrator: PipelineOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    """Analyze an image, enhance its description, and regenerate it.

    200 with the (possibly degraded) result, 400 with {error} for invalid input,
    500 with the result when vision analysis fails or {error} for anything unexpected.
    """
    try:
        outcome = orchestrator.run(req)
    except Exception:
        logger.exception("Unhandled error processing image analysis request")
        return JSONResponse(status_code=500, content={"error": GENERIC_ERROR})

    if outcome.client_error is not None:
        return JSONResponse(status_code=400, content={"error": outcome.client_error})
    if outcome.result is None:
        return JSONResponse(status_code=500, content={"error": GENERIC_ERROR})
    return JSONResponse(status_code=outcome.status_code, content=outcome.result.to_wire())
