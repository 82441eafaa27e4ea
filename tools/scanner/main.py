"""
Barcode scanner CLI.

Usage:
    scan image ./photo.jpg
    scan image "data:image/png;base64,iVBORw0..."
    scan batch ./images/ --recursive
    scan camera --timeout 30
"""

import asyncio
import json
from pathlib import Path

import click
import structlog

from src.acquisition import find_images
from src.barcode import build_orchestrator, scan_image
from src.config import configure_logging, get_settings
from src.models import DetectionOutcome
from src.scanning import ScanHistory, create_camera_session

logger = structlog.get_logger(__name__)


def format_outcome(outcome: DetectionOutcome, as_json: bool) -> str:
    if as_json:
        return json.dumps(outcome.to_dict())
    if outcome.is_error:
        return f"Error: {outcome.error}"
    if not outcome.found:
        return outcome.message or ""

    line = f"{outcome.code}  ({outcome.method.value})"
    if outcome.low_confidence:
        line += "  [best guess]"
    elif outcome.checksum_valid:
        line += f"  [{outcome.symbology.value}]"
    return line


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL")
def cli(log_level: str | None):
    """Detect barcodes and QR codes in images or from a camera."""
    settings = get_settings()
    if log_level:
        settings = settings.model_copy(update={"log_level": log_level})
    configure_logging(settings)


@cli.command()
@click.argument("source")
@click.option("--json", "as_json", is_flag=True, help="Print the outcome as JSON")
def image(source: str, as_json: bool):
    """Scan one image file or data URL."""
    outcome = asyncio.run(scan_image(source, build_orchestrator()))
    click.echo(format_outcome(outcome, as_json))
    if outcome.is_error:
        raise SystemExit(1)


@cli.command()
@click.argument(
    "source",
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
)
@click.option("--recursive", is_flag=True, help="Recursively search for images")
@click.option("--json", "as_json", is_flag=True, help="Print one JSON object per image")
def batch(source: Path, recursive: bool, as_json: bool):
    """Scan every image in a directory."""
    images = find_images(source, recursive=recursive)
    if not images:
        click.echo("No images found in the specified directory.")
        return

    orchestrator = build_orchestrator()
    history = ScanHistory()

    async def run() -> None:
        for path in images:
            outcome = await scan_image(path, orchestrator)
            if outcome.found:
                history.add(outcome.code, outcome.method)
            prefix = "" if as_json else f"{path.name}: "
            click.echo(prefix + format_outcome(outcome, as_json))

    asyncio.run(run())

    if not as_json:
        click.echo("")
        click.echo(f"Scanned {len(images)} images, {len(history)} distinct codes")


@cli.command()
@click.option("--timeout", type=float, default=None, help="Give up after this many seconds")
@click.option(
    "--continuous",
    is_flag=True,
    help="Keep scanning after a detection and report every new code",
)
def camera(timeout: float | None, continuous: bool):
    """Scan from the configured camera until a code is found."""
    settings = get_settings()

    def on_detect(code: str, method: str) -> None:
        click.echo(f"{code}  ({method})")

    def on_error(error) -> None:
        click.echo(f"Error: {error.message}", err=True)

    session = create_camera_session(
        on_detect=on_detect,
        on_error=on_error,
        settings=settings,
        stop_on_detect=not continuous,
    )
    click.echo("Point the camera at a barcode... (Ctrl+C to stop)")

    try:
        detected = asyncio.run(session.run_until_detected(timeout))
    except KeyboardInterrupt:
        click.echo("\nStopped.")
        return

    if session.last_error is not None:
        raise SystemExit(1)
    if detected is None and not continuous:
        click.echo("No code detected.")


if __name__ == "__main__":
    cli()
