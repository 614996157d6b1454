"""Unit tests for the imagegc CLI."""

import base64
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner, Result

from imagegc.cli import cli
from imagegc.cli.handlers import map_exception_to_exit
from imagegc.cli.utils import (
    EXIT_API_OR_NETWORK,
    EXIT_AUTH_REQUIRED,
    EXIT_SUCCESS,
    EXIT_VALIDATION_OR_CONFIG,
    default_output_path,
)
from imagegc.core.models import AnalysisResult, ProcessingMetrics
from imagegc.core.pipeline import PipelineOutcome, PipelineState
from imagegc.utils.exceptions import (
    APIError,
    AuthError,
    ConfigurationError,
    GatewayError,
    TransientNetworkError,
    ValidationError,
)


def _run_cli(*args: str) -> Result:
    runner = CliRunner()
    return runner.invoke(cli, ["analyze", *args])


def _result(png_bytes: bytes | None = None, error_info: str | None = None) -> AnalysisResult:
    return AnalysisResult(
        description="A tabby cat on a grey couch.",
        tags=["cat", "couch"],
        confidence_score=0.9,
        regenerated_image_data=base64.b64encode(png_bytes).decode() if png_bytes else None,
        metrics=ProcessingMetrics(error_info=error_info),
    )


@pytest.fixture
def image_file(tmp_path: Path, png_bytes: bytes) -> Path:
    path = tmp_path / "cat.png"
    path.write_bytes(png_bytes)
    return path


@pytest.mark.unit
class TestAnalyzeCommand:
    def test_missing_image_argument(self):
        result = _run_cli()
        assert result.exit_code != 0
        assert "Missing argument" in result.output

    @patch("imagegc.cli.commands.ImageAnalysisClient")
    def test_remote_success_saves_image(self, mock_client_cls, image_file, png_bytes, tmp_path):
        mock_client_cls.return_value.analyze_file.return_value = _result(png_bytes)
        out = tmp_path / "out.png"

        result = _run_cli(str(image_file), "--out", str(out), "--quiet", "--length", "40")

        assert result.exit_code == EXIT_SUCCESS, result.output
        assert out.read_bytes() == png_bytes
        assert "A tabby cat on a grey couch." in result.output
        assert str(out) in result.output
        mock_client_cls.return_value.analyze_file.assert_called_once_with(image_file, 40)

    @patch("imagegc.cli.commands.RetryingGateway")
    @patch("imagegc.cli.commands.ImageAnalysisClient")
    def test_server_option_passed_to_gateway(self, mock_client_cls, mock_gateway_cls, image_file):
        mock_client_cls.return_value.analyze_file.return_value = _result()
        result = _run_cli(str(image_file), "--server", "http://10.0.0.5:9000", "-q")
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert mock_gateway_cls.call_args.args[0] == "http://10.0.0.5:9000"

    @patch("imagegc.cli.commands.ImageAnalysisClient")
    def test_degraded_result_without_image(self, mock_client_cls, image_file):
        mock_client_cls.return_value.analyze_file.return_value = _result(
            error_info="Image generation failed: rejected"
        )
        result = _run_cli(str(image_file), "-q")
        assert result.exit_code == EXIT_SUCCESS
        assert "A tabby cat on a grey couch." in result.output

    @pytest.mark.parametrize(
        "error, expected_code",
        [
            (AuthError("Authentication required", status_code=401), EXIT_AUTH_REQUIRED),
            (TransientNetworkError("gave up", status_code=503, attempts=3), EXIT_API_OR_NETWORK),
            (GatewayError("bad", status_code=400, body='{"error": "bad type"}'), EXIT_VALIDATION_OR_CONFIG),
        ],
    )
    @patch("imagegc.cli.commands.ImageAnalysisClient")
    def test_gateway_errors_map_to_exit_codes(self, mock_client_cls, image_file, error, expected_code):
        mock_client_cls.return_value.analyze_file.side_effect = error
        result = _run_cli(str(image_file), "-q")
        assert result.exit_code == expected_code

    @patch("imagegc.cli.commands.ImageAnalysisClient")
    def test_unexpected_error_mapped_by_default(self, mock_client_cls, image_file):
        mock_client_cls.return_value.analyze_file.side_effect = RuntimeError("boom")
        result = CliRunner().invoke(
            cli, ["analyze", str(image_file), "-q"], env={"IMAGEGC_VERBOSITY": "0"}
        )
        assert result.exit_code == EXIT_API_OR_NETWORK
        assert isinstance(result.exception, SystemExit)
        assert "boom" in result.output

    @patch("imagegc.cli.commands.ImageAnalysisClient")
    def test_unexpected_error_propagates_with_vv(self, mock_client_cls, image_file):
        mock_client_cls.return_value.analyze_file.side_effect = RuntimeError("boom")
        result = _run_cli(str(image_file), "-q", "-vv")
        assert isinstance(result.exception, RuntimeError)
        assert str(result.exception) == "boom"

    @patch("imagegc.cli.commands.ImageAnalysisClient")
    def test_known_errors_still_mapped_with_vv(self, mock_client_cls, image_file):
        mock_client_cls.return_value.analyze_file.side_effect = AuthError(
            "Authentication required", status_code=401
        )
        result = _run_cli(str(image_file), "-q", "-vv")
        assert result.exit_code == EXIT_AUTH_REQUIRED
        assert isinstance(result.exception, SystemExit)

    @patch("imagegc.cli.commands.PipelineOrchestrator")
    @patch("imagegc.cli.commands.Config")
    def test_local_mode_runs_pipeline(self, mock_config_cls, mock_orch_cls, image_file, png_bytes, tmp_path):
        mock_orch_cls.from_config.return_value.run.return_value = PipelineOutcome(
            PipelineState.COMPLETE, result=_result(png_bytes)
        )
        out = tmp_path / "local.png"
        result = _run_cli(str(image_file), "--local", "--out", str(out), "-q")

        assert result.exit_code == EXIT_SUCCESS, result.output
        mock_config_cls.from_env.return_value.validate.assert_called_once()
        assert out.read_bytes() == png_bytes

    @patch("imagegc.cli.commands.PipelineOrchestrator")
    @patch("imagegc.cli.commands.Config")
    def test_local_mode_vision_failure(self, _mock_config_cls, mock_orch_cls, image_file):
        mock_orch_cls.from_config.return_value.run.return_value = PipelineOutcome(
            PipelineState.ABORTED,
            result=AnalysisResult(
                metrics=ProcessingMetrics(error_info="Computer Vision analysis failed: down")
            ),
        )
        result = _run_cli(str(image_file), "--local", "-q")
        assert result.exit_code == EXIT_API_OR_NETWORK
        assert "Computer Vision analysis failed: down" in result.output

    @patch("imagegc.cli.commands.Config")
    def test_local_mode_config_error(self, mock_config_cls, image_file):
        mock_config_cls.from_env.return_value.validate.side_effect = ConfigurationError(
            "Azure Vision endpoint is required."
        )
        result = _run_cli(str(image_file), "--local", "-q")
        assert result.exit_code == EXIT_VALIDATION_OR_CONFIG
        assert "endpoint is required" in result.output

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "cat.gif"
        path.write_bytes(b"GIF89a")
        result = _run_cli(str(path), "-q")
        assert result.exit_code == EXIT_VALIDATION_OR_CONFIG


@pytest.mark.unit
class TestServeCommand:
    @patch("uvicorn.run")
    @patch("imagegc.server.create_app")
    def test_serve_runs_uvicorn(self, mock_create_app, mock_run):
        result = CliRunner().invoke(cli, ["serve", "--host", "0.0.0.0", "--port", "9001"])
        assert result.exit_code == 0, result.output
        mock_run.assert_called_once_with(mock_create_app.return_value, host="0.0.0.0", port=9001)

    @patch("uvicorn.run")
    @patch("imagegc.server.create_app", side_effect=ConfigurationError("Azure OpenAI key is required."))
    def test_serve_config_error(self, _mock_create_app, mock_run):
        result = CliRunner().invoke(cli, ["serve"])
        assert result.exit_code == EXIT_VALIDATION_OR_CONFIG
        mock_run.assert_not_called()


@pytest.mark.unit
class TestHelpers:
    def test_map_exception_to_exit(self):
        assert map_exception_to_exit(ValidationError("x", field="f")) == (
            EXIT_VALIDATION_OR_CONFIG,
            "x (field: f)",
        )
        assert map_exception_to_exit(APIError("api"))[0] == EXIT_API_OR_NETWORK
        assert map_exception_to_exit(RuntimeError("boom")) == (EXIT_API_OR_NETWORK, "boom")

    def test_gateway_error_prefers_server_message(self):
        code, msg = map_exception_to_exit(
            GatewayError("raw", status_code=400, body='{"error": "Only JPG and PNG files are supported."}')
        )
        assert code == EXIT_VALIDATION_OR_CONFIG
        assert "Only JPG and PNG files are supported." in msg

    @pytest.mark.parametrize(
        "content_type, ext", [("image/png", "png"), ("image/jpeg", "jpg"), ("application/x", "png")]
    )
    def test_default_output_path(self, content_type, ext):
        path = default_output_path(content_type)
        assert path.startswith("imagegc_")
        assert path.endswith(f".{ext}")
