"""
Analysis pipeline orchestration for imagegc.

Runs one analyze request through validation, vision analysis, description
enhancement, and image regeneration, in that order. Validation and vision
failures abort the request; enhancement and regeneration failures are recorded
in the metrics and the pipeline carries on with what it has.

States:
    VALIDATING -> ANALYZING -> ENHANCING -> REGENERATING -> COMPLETE
    VALIDATING | ANALYZING -> ABORTED
"""

import base64
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from imagegc.core.config import Config
from imagegc.core.enhance import DescriptionEnhancer
from imagegc.core.image_gen import ImageRegenerator
from imagegc.core.models import (
    AnalysisRequest,
    AnalysisResult,
    Enhancement,
    RegeneratedImage,
    StageOutcome,
    StageStatus,
    VisionAnalysis,
)
from imagegc.core.payload import validate_request
from imagegc.core.providers.azure_openai import AzureOpenAIProvider
from imagegc.core.vision import VisionAnalyzer
from imagegc.logging_config import STATE_TRACE, get_logger
from imagegc.utils.exceptions import ValidationError

logger = get_logger(__name__)
state_logger = get_logger(STATE_TRACE)


class PipelineState(str, Enum):
    VALIDATING = "validating"
    ANALYZING = "analyzing"
    ENHANCING = "enhancing"
    REGENERATING = "regenerating"
    COMPLETE = "complete"
    ABORTED = "aborted"


_TRANSITIONS: dict[PipelineState, tuple[PipelineState, ...]] = {
    PipelineState.VALIDATING: (PipelineState.ANALYZING, PipelineState.ABORTED),
    PipelineState.ANALYZING: (PipelineState.ENHANCING, PipelineState.ABORTED),
    PipelineState.ENHANCING: (PipelineState.REGENERATING,),
    PipelineState.REGENERATING: (PipelineState.COMPLETE,),
    PipelineState.COMPLETE: (),
    PipelineState.ABORTED: (),
}


@dataclass
class PipelineOutcome:
    """
    Final state of one pipeline run.

    COMPLETE always has a result (possibly degraded). ABORTED has either a
    client_error (validation failed, nothing ran) or a result whose metrics
    carry the vision failure.
    """

    state: PipelineState
    result: AnalysisResult | None = None
    client_error: str | None = None
    states: list[PipelineState] = field(default_factory=list)

    @property
    def status_code(self) -> int:
        """HTTP status for this outcome: 200 complete, 400 invalid input, 500 vision failure."""
        if self.state is PipelineState.COMPLETE:
            return 200
        if self.client_error is not None:
            return 400
        return 500


class _Run:
    """Mutable state of a single request; never shared between requests."""

    def __init__(self) -> None:
        self.state = PipelineState.VALIDATING
        self.states = [PipelineState.VALIDATING]
        self.result = AnalysisResult()

    def advance(self, target: PipelineState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal pipeline transition {self.state.value} -> {target.value}")
        state_logger.debug("Pipeline state %s -> %s", self.state.value, target.value)
        self.state = target
        self.states.append(target)


class PipelineOrchestrator:
    """Sequences the stages of an analyze request and applies the failure policy."""

    def __init__(
        self,
        vision: VisionAnalyzer,
        enhancer: DescriptionEnhancer,
        regenerator: ImageRegenerator,
    ) -> None:
        self._vision = vision
        self._enhancer = enhancer
        self._regenerator = regenerator

    @classmethod
    def from_config(cls, config: Config) -> "PipelineOrchestrator":
        """Build the orchestrator with the Azure-backed stages described by config."""
        provider = AzureOpenAIProvider(config)
        return cls(
            vision=VisionAnalyzer(config),
            enhancer=DescriptionEnhancer(config, provider),
            regenerator=ImageRegenerator(config, provider),
        )

    def _analyze(self, image_bytes: bytes) -> StageOutcome[VisionAnalysis]:
        start_time = time.time()
        try:
            analysis = self._vision.analyze(image_bytes)
        except Exception as e:
            elapsed_ms = int((time.time() - start_time) * 1000)
            logger.exception("Error during Computer Vision analysis")
            return StageOutcome.fatal(f"Computer Vision analysis failed: {e}", elapsed_ms)
        return StageOutcome.success(analysis, elapsed_ms=analysis.elapsed_ms)

    def _guarded(
        self, label: str, stage: Callable[[], StageOutcome], fallback: object = None
    ) -> StageOutcome:
        """Run a non-fatal stage; anything it raises becomes a DEGRADED outcome."""
        start_time = time.time()
        try:
            return stage()
        except Exception as e:
            elapsed_ms = int((time.time() - start_time) * 1000)
            logger.exception("Unexpected error during %s", label.lower())
            return StageOutcome.degraded(f"{label} failed: {e}", value=fallback, elapsed_ms=elapsed_ms)

    def run(self, request: AnalysisRequest) -> PipelineOutcome:
        """
        Process one analyze request.

        Never raises for stage failures; the outcome's state and status_code say
        how the request ended.
        """
        logger.info(
            "Image analysis request received. File: %s, Description Length: %d words",
            request.file_name or "<unnamed>",
            request.description_length,
        )
        run = _Run()
        result = run.result
        metrics = result.metrics
        start_time = time.time()

        # Validating
        try:
            image_bytes = validate_request(request)
        except ValidationError as e:
            run.advance(PipelineState.ABORTED)
            return PipelineOutcome(run.state, client_error=str(e), states=run.states)

        # Analyzing
        run.advance(PipelineState.ANALYZING)
        logger.info("Step 1: Analyzing image")
        vision = self._analyze(image_bytes)
        metrics.image_analysis_time_ms = vision.elapsed_ms
        if vision.status is StageStatus.FATAL or vision.value is None:
            metrics.record_error(vision.error or "Computer Vision analysis failed")
            run.advance(PipelineState.ABORTED)
            return PipelineOutcome(run.state, result=result, states=run.states)
        analysis = vision.value
        result.tags = list(analysis.tags)
        result.confidence_score = analysis.confidence

        # Enhancing
        run.advance(PipelineState.ENHANCING)
        logger.info("Step 2: Enhancing description")
        enhanced: StageOutcome[Enhancement] = self._guarded(
            "Description enhancement",
            lambda: self._enhancer.enhance(
                analysis.description, analysis.tags, request.description_length
            ),
            fallback=Enhancement(description=analysis.description),
        )
        metrics.description_generation_time_ms = enhanced.elapsed_ms
        if enhanced.ok and enhanced.value is not None:
            description = enhanced.value.description
            metrics.description_tokens_used = enhanced.value.tokens_used
        else:
            description = analysis.description
            metrics.record_error(enhanced.error or "Description enhancement failed")
        result.description = description

        # Regenerating
        run.advance(PipelineState.REGENERATING)
        logger.info("Step 3: Generating image")
        regenerated: StageOutcome[RegeneratedImage] = self._guarded(
            "Image generation", lambda: self._regenerator.regenerate(description)
        )
        metrics.image_regeneration_time_ms = regenerated.elapsed_ms
        if regenerated.ok and regenerated.value is not None:
            image = regenerated.value
            result.regenerated_image_data = base64.b64encode(image.image_bytes).decode("ascii")
            result.regenerated_image_content_type = image.content_type
            metrics.regeneration_tokens_used = image.tokens_used
        else:
            metrics.record_error(regenerated.error or "Image generation failed")

        run.advance(PipelineState.COMPLETE)
        total_ms = int((time.time() - start_time) * 1000)
        logger.info(
            "Image analysis completed in %dms%s",
            total_ms,
            " (degraded)" if metrics.error_info else "",
        )
        return PipelineOutcome(run.state, result=result, states=run.states)
