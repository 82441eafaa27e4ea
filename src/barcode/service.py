"""
Single-image scanning entry point for uploads, drops and pastes.
"""

from pathlib import Path

import numpy as np
import structlog
from PIL import Image

from src.acquisition import PixelBuffer, load_bytes, load_data_url, load_file, load_image
from src.barcode.orchestrator import DetectionOrchestrator, build_orchestrator
from src.core.exceptions import AcquisitionError
from src.models.detection import DetectionOutcome

logger = structlog.get_logger(__name__)

ImageSource = bytes | str | Path | Image.Image | np.ndarray | PixelBuffer


def acquire(source: ImageSource) -> PixelBuffer:
    """
    Turn any supported still-image source into a PixelBuffer.

    Strings starting with ``data:`` are data URLs; other strings are paths.
    """
    if isinstance(source, PixelBuffer):
        return source
    if isinstance(source, bytes):
        return load_bytes(source)
    if isinstance(source, str) and source.startswith("data:"):
        return load_data_url(source)
    if isinstance(source, (str, Path)):
        return load_file(source)
    if isinstance(source, (Image.Image, np.ndarray)):
        return load_image(source)
    raise AcquisitionError(f"Unsupported image source: {type(source).__name__}")


async def scan_image(
    source: ImageSource,
    orchestrator: DetectionOrchestrator | None = None,
) -> DetectionOutcome:
    """
    Detect a code in one still image.

    Acquisition failures come back on the outcome's ``error`` field;
    "nothing found" comes back as an outcome with only a ``message``.
    Neither raises.
    """
    orchestrator = orchestrator or build_orchestrator()

    try:
        buffer = acquire(source)
    except AcquisitionError as e:
        logger.warning("Image acquisition failed", error=e.message)
        return DetectionOutcome(error=e.message, message=e.message)

    outcome = await orchestrator.scan(buffer)
    logger.info(
        "Image scanned",
        width=buffer.width,
        height=buffer.height,
        code=outcome.code,
        method=outcome.method.value if outcome.method else None,
    )
    return outcome
