"""
Request, result, and stage-outcome types for the analysis pipeline.

AnalysisRequest/AnalysisResult/ProcessingMetrics are the wire types of
POST /api/imageanalysis/analyze and serialize with camelCase aliases
(imageData, confidenceScore, errorInfo, ...). The dataclasses at the bottom
are internal values passed between stages and the orchestrator.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalysisRequest(_CamelModel):
    """Inbound analyze request. Payload size and content type are checked by core.payload."""

    image_data: str
    file_name: str = ""
    content_type: str
    description_length: int = Field(default=100, gt=0)


class ProcessingMetrics(_CamelModel):
    """Per-stage timings (ms), token counts, and the partial-failure summary."""

    image_analysis_time_ms: int = 0
    description_generation_time_ms: int = 0
    image_regeneration_time_ms: int = 0
    description_tokens_used: int = 0
    regeneration_tokens_used: int = 0
    error_info: str | None = None

    def record_error(self, message: str) -> None:
        """Append a failure reason; the first recorded failure always stays first."""
        if self.error_info:
            self.error_info = f"{self.error_info}; {message}"
        else:
            self.error_info = message


class AnalysisResult(_CamelModel):
    """Result returned to the caller, possibly degraded."""

    description: str = ""
    tags: list[str] = Field(default_factory=list)
    confidence_score: float = Field(default=0.0, ge=0.0, le=1.0)
    regenerated_image_data: str | None = None
    regenerated_image_content_type: str = "image/png"
    metrics: ProcessingMetrics = Field(default_factory=ProcessingMetrics)

    def to_wire(self) -> dict:
        """Serialize with camelCase keys for the HTTP response body."""
        return self.model_dump(by_alias=True, mode="json")


class StageStatus(str, Enum):
    """How a stage finished, from the orchestrator's point of view."""

    SUCCESS = "success"
    DEGRADED = "degraded"
    FATAL = "fatal"


@dataclass
class StageOutcome(Generic[T]):
    """
    Result of one pipeline stage.

    SUCCESS carries the stage value. DEGRADED carries whatever substitute value
    the stage could offer (or None) plus the failure reason. FATAL carries only
    the reason; the orchestrator aborts on it.
    """

    status: StageStatus
    value: T | None = None
    error: str | None = None
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.status is StageStatus.SUCCESS

    @classmethod
    def success(cls, value: T, elapsed_ms: int = 0) -> "StageOutcome[T]":
        return cls(StageStatus.SUCCESS, value=value, elapsed_ms=elapsed_ms)

    @classmethod
    def degraded(
        cls, error: str, value: T | None = None, elapsed_ms: int = 0
    ) -> "StageOutcome[T]":
        return cls(StageStatus.DEGRADED, value=value, error=error, elapsed_ms=elapsed_ms)

    @classmethod
    def fatal(cls, error: str, elapsed_ms: int = 0) -> "StageOutcome[T]":
        return cls(StageStatus.FATAL, error=error, elapsed_ms=elapsed_ms)


@dataclass
class VisionAnalysis:
    """Output of the vision stage."""

    description: str
    tags: list[str] = field(default_factory=list)
    confidence: float = 0.0
    elapsed_ms: int = 0


@dataclass
class Enhancement:
    """Output of the enhancement stage; model_used is None when the basic description was kept."""

    description: str
    tokens_used: int = 0
    model_used: str | None = None


@dataclass
class RegeneratedImage:
    """Output of the regeneration stage."""

    image_bytes: bytes
    content_type: str = "image/png"
    tokens_used: int = 0
    model_used: str = ""
