"""
Frame acquisition: every input kind becomes a PixelBuffer.
"""

from src.acquisition.buffer import PixelBuffer
from src.acquisition.camera import FrameSource, OpenCVCamera, capture_frame, frame_to_buffer
from src.acquisition.loaders import (
    SUPPORTED_EXTENSIONS,
    find_images,
    is_image_file,
    load_bytes,
    load_data_url,
    load_file,
    load_image,
    to_data_url,
)

__all__ = [
    "PixelBuffer",
    "FrameSource",
    "OpenCVCamera",
    "capture_frame",
    "frame_to_buffer",
    "SUPPORTED_EXTENSIONS",
    "find_images",
    "is_image_file",
    "load_bytes",
    "load_data_url",
    "load_file",
    "load_image",
    "to_data_url",
]
