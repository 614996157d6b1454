"""
Rich progress displays for CLI operations.

All output goes to stderr to preserve stdout for machine-readable output.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from imagegc.core.models import AnalysisResult

# Console for stderr output (preserves stdout for machine output)
console = Console(stderr=True)


@contextmanager
def analysis_progress(image: Path, target: str) -> Iterator[None]:
    """
    Display a spinner while the image is analyzed, described, and regenerated.

    Args:
        image: The image being analyzed
        target: Where the request runs (server URL or "local")

    Yields:
        None while the request is in progress
    """
    progress = Progress(
        SpinnerColumn(spinner_name="dots"),
        TextColumn("[cyan]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,  # Disappears when done
    )
    description = f"Analyzing {image.name} [dim]({target})[/dim]"

    with progress:
        task = progress.add_task(description, total=None)
        yield
        progress.update(task, completed=True)


def print_analysis_result(result: AnalysisResult, output_path: Path | None) -> None:
    """
    Print a rich formatted summary of an analysis result.

    Args:
        result: The (possibly degraded) analysis result
        output_path: Where the regenerated image was saved, or None when there was no image
    """
    metrics = result.metrics
    table = Table.grid(padding=(0, 2))
    table.add_column(style="cyan", justify="right", vertical="top")
    table.add_column(style="white")

    table.add_row("Description", result.description or "[dim]none[/dim]")
    table.add_row("Tags", ", ".join(result.tags) if result.tags else "[dim]none[/dim]")
    table.add_row("Confidence", f"{result.confidence_score:.2f}")
    if output_path is not None:
        table.add_row("Saved to", f"[bold green]{output_path}[/bold green]")
    table.add_row(
        "Time",
        f"analysis {metrics.image_analysis_time_ms}ms • "
        f"description {metrics.description_generation_time_ms}ms • "
        f"regeneration {metrics.image_regeneration_time_ms}ms",
    )
    table.add_row(
        "Tokens",
        f"description {metrics.description_tokens_used} • "
        f"regeneration {metrics.regeneration_tokens_used}",
    )

    degraded = bool(metrics.error_info)
    if degraded:
        table.add_row("Issues", f"[yellow]{metrics.error_info}[/yellow]")

    panel = Panel(
        table,
        title=(
            "[bold yellow]⚠ Image Analyzed (degraded)[/bold yellow]"
            if degraded
            else "[bold green]✓ Image Analyzed[/bold green]"
        ),
        border_style="yellow" if degraded else "green",
        padding=(1, 2),
    )

    console.print()
    console.print(panel)


def print_info(message: str) -> None:
    """Print an info message in cyan."""
    console.print(f"[cyan]ℹ[/cyan] {message}")


def print_warning(message: str) -> None:
    """Print a warning message in yellow."""
    console.print(f"[yellow]⚠[/yellow] {message}")


def print_error(message: str) -> None:
    """Print an error message in red."""
    console.print(f"[red]✗[/red] {message}")
