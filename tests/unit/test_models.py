"""Unit tests for wire models and stage outcomes."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from imagegc.core.models import (
    AnalysisRequest,
    AnalysisResult,
    ProcessingMetrics,
    StageOutcome,
    StageStatus,
)


@pytest.mark.unit
class TestAnalysisRequest:
    def test_accepts_camel_case(self):
        req = AnalysisRequest.model_validate(
            {"imageData": "QUJD", "fileName": "cat.png", "contentType": "image/png", "descriptionLength": 50}
        )
        assert req.image_data == "QUJD"
        assert req.file_name == "cat.png"
        assert req.description_length == 50

    def test_default_length(self):
        req = AnalysisRequest.model_validate({"imageData": "QUJD", "contentType": "image/png"})
        assert req.description_length == 100

    @pytest.mark.parametrize("length", [0, -5])
    def test_non_positive_length_rejected(self, length):
        with pytest.raises(PydanticValidationError):
            AnalysisRequest(image_data="QUJD", content_type="image/png", description_length=length)


@pytest.mark.unit
class TestProcessingMetrics:
    def test_record_error_keeps_first_failure_first(self):
        m = ProcessingMetrics()
        m.record_error("Description enhancement failed: busy")
        m.record_error("Image generation failed: policy")
        assert m.error_info == (
            "Description enhancement failed: busy; Image generation failed: policy"
        )


@pytest.mark.unit
class TestAnalysisResult:
    def test_to_wire_uses_camel_case(self):
        wire = AnalysisResult(description="d", tags=["a"], confidence_score=0.5).to_wire()
        assert set(wire) == {
            "description",
            "tags",
            "confidenceScore",
            "regeneratedImageData",
            "regeneratedImageContentType",
            "metrics",
        }
        assert wire["regeneratedImageData"] is None
        assert wire["regeneratedImageContentType"] == "image/png"
        assert wire["metrics"]["imageAnalysisTimeMs"] == 0
        assert wire["metrics"]["errorInfo"] is None

    def test_confidence_bounds(self):
        with pytest.raises(PydanticValidationError):
            AnalysisResult(confidence_score=1.5)


@pytest.mark.unit
class TestStageOutcome:
    def test_constructors(self):
        ok = StageOutcome.success("v", elapsed_ms=5)
        assert ok.ok and ok.value == "v" and ok.elapsed_ms == 5
        degraded = StageOutcome.degraded("why", value="basic")
        assert degraded.status is StageStatus.DEGRADED and not degraded.ok
        assert degraded.value == "basic"
        fatal = StageOutcome.fatal("boom")
        assert fatal.status is StageStatus.FATAL and fatal.value is None
