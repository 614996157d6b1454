"""
Click command definitions for the imagegc CLI.

This module contains the Click command group and all CLI commands
(serve, analyze).
"""

import base64
from functools import partial
from pathlib import Path

import click

from imagegc import __version__
from imagegc.cli import progress
from imagegc.cli.handlers import run_with_error_handling
from imagegc.cli.utils import DEFAULT_SERVER_URL, default_output_path
from imagegc.client import ImageAnalysisClient, RetryingGateway, build_request
from imagegc.core.config import Config
from imagegc.core.models import AnalysisResult
from imagegc.core.pipeline import PipelineOrchestrator, PipelineState
from imagegc.logging_config import configure_logging, get_verbosity_from_env
from imagegc.utils.exceptions import ValidationError, VisionAnalysisError


@click.group(
    help=f"""Image analysis, description enhancement, and regeneration (Azure AI Vision + Azure OpenAI).

\b
Version: {__version__}
"""
)
@click.version_option(version=__version__, package_name="imagegc")
@click.pass_context
def cli(ctx: click.Context) -> None:
    ctx.color = True


@cli.command()
@click.option(
    "--host",
    type=str,
    default="127.0.0.1",
    envvar="IMAGEGC_HOST",
    show_default=True,
    help="Host to bind. Use 0.0.0.0 for LAN.",
)
@click.option(
    "--port",
    "-p",
    type=int,
    default=8000,
    envvar="IMAGEGC_PORT",
    show_default=True,
    help="Port to listen on.",
)
def serve(host: str, port: int) -> None:
    """Run the analysis API server."""
    import uvicorn

    from imagegc.server import create_app

    configure_logging(verbose_level=get_verbosity_from_env(), quiet=False)

    def do_serve() -> None:
        app = create_app()
        uvicorn.run(app, host=host, port=port)

    run_with_error_handling(do_serve)


def _analyze_local(image: Path, length: int) -> AnalysisResult:
    config = Config.from_env()
    config.validate()
    orchestrator = PipelineOrchestrator.from_config(config)
    outcome = orchestrator.run(build_request(image, length))
    if outcome.client_error is not None:
        raise ValidationError(outcome.client_error)
    if outcome.state is not PipelineState.COMPLETE or outcome.result is None:
        reason = outcome.result.metrics.error_info if outcome.result else None
        raise VisionAnalysisError(reason or "Image analysis failed")
    return outcome.result


def _analyze_remote(image: Path, length: int, server: str, token: str | None) -> AnalysisResult:
    gateway = RetryingGateway(
        server,
        access_token=token,
        on_auth_required=lambda url: progress.print_warning(f"Log in at {url} and retry."),
    )
    return ImageAnalysisClient(gateway).analyze_file(image, length)


def _save_image(result: AnalysisResult, out: Path | None) -> Path | None:
    if not result.regenerated_image_data:
        return None
    out_path = out or Path(default_output_path(result.regenerated_image_content_type))
    out_path.write_bytes(base64.b64decode(result.regenerated_image_data))
    return out_path


@cli.command()
@click.argument("image", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--length",
    "-l",
    type=click.IntRange(min=1),
    default=100,
    show_default=True,
    help="Target description length in words.",
)
@click.option(
    "--server",
    "-s",
    envvar="IMAGEGC_SERVER_URL",
    default=DEFAULT_SERVER_URL,
    show_default=True,
    help="imagegc server to send the image to.",
)
@click.option(
    "--local",
    is_flag=True,
    help="Run the pipeline in this process instead of calling a server.",
)
@click.option(
    "--token",
    envvar="IMAGEGC_ACCESS_TOKEN",
    help="Bearer token for the server (overrides IMAGEGC_ACCESS_TOKEN).",
)
@click.option("--out", "-o", type=click.Path(path_type=Path), help="Where to save the regenerated image.")
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Minimize progress messages; only print the description, image path, or errors.",
)
@click.option(
    "--verbose",
    "-v",
    "verbose_count",
    count=True,
    help="Increase verbosity: -v also show descriptions, -vv show API/retry detail.",
)
def analyze(
    image: Path,
    length: int,
    server: str,
    local: bool,
    token: str | None,
    out: Path | None,
    quiet: bool,
    verbose_count: int,
) -> None:
    """Analyze IMAGE, enhance its description, and save the regenerated image."""
    # CLI flags override IMAGEGC_VERBOSITY
    verbose_level = min(verbose_count, 2) if verbose_count > 0 else get_verbosity_from_env()
    configure_logging(verbose_level=verbose_level, quiet=quiet)

    def do_analyze() -> None:
        run = (
            partial(_analyze_local, image, length)
            if local
            else partial(_analyze_remote, image, length, server, token)
        )

        if quiet:
            result = run()
        else:
            with progress.analysis_progress(image, "local" if local else server):
                result = run()

        out_path = _save_image(result, out)

        if not quiet:
            progress.print_analysis_result(result, out_path)
            if out_path is None:
                progress.print_warning("No image was regenerated.")
        # stdout: description, then the image path when one was saved
        click.echo(result.description)
        if out_path is not None:
            click.echo(str(out_path))

    run_with_error_handling(do_analyze, quiet=quiet, debug=verbose_level >= 2)


def main() -> None:
    """Entry point for the imagegc console script."""
    cli()


__all__ = ["cli", "main", "analyze", "serve"]
