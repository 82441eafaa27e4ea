"""
Still-image acquisition: uploaded files, dropped files, data URLs and
pasted clipboard images are all normalized into a PixelBuffer.
"""

import base64
import binascii
import mimetypes
from io import BytesIO
from pathlib import Path

import numpy as np
import structlog
from PIL import Image, UnidentifiedImageError

from src.acquisition.buffer import PixelBuffer
from src.core.exceptions import AcquisitionError

logger = structlog.get_logger(__name__)

# Supported image extensions
SUPPORTED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".tif", ".tiff"}


def load_image(image: Image.Image | np.ndarray) -> PixelBuffer:
    """
    Convert an in-memory image to a PixelBuffer.

    Args:
        image: PIL Image (any mode) or numpy array (gray, RGB or RGBA)

    Returns:
        PixelBuffer at the image's native size
    """
    if isinstance(image, np.ndarray):
        try:
            image = Image.fromarray(image)
        except (TypeError, ValueError) as e:
            raise AcquisitionError(f"Unsupported array layout: {e}") from e
    elif not isinstance(image, Image.Image):
        raise AcquisitionError(f"Unsupported image type: {type(image).__name__}")

    if image.width == 0 or image.height == 0:
        raise AcquisitionError("Image has zero dimensions")

    rgba = image if image.mode == "RGBA" else image.convert("RGBA")
    return PixelBuffer.from_rgba(np.asarray(rgba))


def load_bytes(data: bytes) -> PixelBuffer:
    """
    Fully decode encoded image bytes (PNG, JPEG, ...) into a PixelBuffer.

    Raises:
        AcquisitionError: If the bytes are empty, corrupt or decode to 0x0
    """
    if not data:
        raise AcquisitionError("Image data is empty")

    try:
        with Image.open(BytesIO(data)) as image:
            # Force a full decode before sampling
            image.load()
            return load_image(image)
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
        raise AcquisitionError(f"Could not decode image: {e}") from e


def load_data_url(url: str) -> PixelBuffer:
    """Decode a ``data:image/...;base64,...`` URL."""
    if not url.startswith("data:"):
        raise AcquisitionError("Not a data URL")

    header, sep, payload = url.partition(",")
    if not sep:
        raise AcquisitionError("Malformed data URL: missing payload")

    media = header[len("data:"):]
    parts = media.split(";")
    mime_type = parts[0] or "text/plain"
    if not mime_type.startswith("image/"):
        raise AcquisitionError(f"Data URL is not an image: {mime_type}")
    if "base64" not in parts[1:]:
        raise AcquisitionError("Only base64 data URLs are supported")

    try:
        data = base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError) as e:
        raise AcquisitionError(f"Invalid base64 payload: {e}") from e

    return load_bytes(data)


def is_image_file(path: Path) -> bool:
    """Check by extension or guessed MIME type whether a path is an image."""
    if path.suffix.lower() in SUPPORTED_EXTENSIONS:
        return True
    mime_type, _ = mimetypes.guess_type(path.name)
    return bool(mime_type and mime_type.startswith("image/"))


def load_file(path: str | Path) -> PixelBuffer:
    """Read an uploaded or dropped image file."""
    path = Path(path)
    if not is_image_file(path):
        raise AcquisitionError(f"Not an image file: {path.name}")

    try:
        data = path.read_bytes()
    except OSError as e:
        raise AcquisitionError(f"Error reading image file {path.name}: {e}") from e

    logger.debug("Loaded image file", filename=path.name, size=len(data))
    return load_bytes(data)


def find_images(source_dir: Path, recursive: bool = False) -> list[Path]:
    """Find all supported image files in a directory."""
    images = []
    glob = source_dir.rglob if recursive else source_dir.glob
    for ext in SUPPORTED_EXTENSIONS:
        images.extend(glob(f"*{ext}"))
        images.extend(glob(f"*{ext.upper()}"))
    return sorted(set(images))


def to_data_url(data: bytes, mime_type: str = "image/png") -> str:
    """Encode image bytes as a base64 data URL."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"
