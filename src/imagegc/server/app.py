"""
imagegc API server: FastAPI application factory.

Usage:
    imagegc serve --host 0.0.0.0 --port 8000

Or with uvicorn directly:
    uvicorn imagegc.server.app:create_app --factory
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

import imagegc
from imagegc.core.config import Config
from imagegc.core.pipeline import PipelineOrchestrator
from imagegc.logging_config import get_logger
from imagegc.server.routes import router as analysis_router

logger = get_logger(__name__)


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg', 'invalid')}" if loc else err.get("msg", "invalid"))
    return "Invalid request: " + "; ".join(parts)


async def _request_validation_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    message = _format_validation_errors(exc)
    logger.warning("%s", message)
    return JSONResponse(status_code=400, content={"error": message})


def create_app(
    config: Config | None = None,
    orchestrator: PipelineOrchestrator | None = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        config: Configuration to build the pipeline from; loaded from the
            environment and validated when omitted
        orchestrator: Pre-built orchestrator (tests, embedding); takes precedence over config

    Raises:
        ConfigurationError: If no orchestrator is given and the configuration is invalid
    """
    if orchestrator is None:
        config = config or Config.from_env()
        config.validate()
        orchestrator = PipelineOrchestrator.from_config(config)
        logger.info(
            "Pipeline initialized with chat model: %s, image model: %s, fallback model: %s",
            config.chat_deployment,
            config.image_deployment,
            config.fallback_chat_deployment or "none",
        )

    app = FastAPI(
        title="imagegc",
        description="Image analysis, description enhancement, and regeneration",
        version=imagegc.__version__,
    )
    app.state.orchestrator = orchestrator
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.include_router(analysis_router)
    return app
