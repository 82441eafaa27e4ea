"""
Tests for pixel buffers, image loaders and frame capture.
"""

import numpy as np
import pytest
from PIL import Image

from src.acquisition import (
    PixelBuffer,
    capture_frame,
    find_images,
    frame_to_buffer,
    is_image_file,
    load_bytes,
    load_data_url,
    load_file,
    load_image,
    to_data_url,
)
from src.core.exceptions import AcquisitionError, CameraError
from tests.helpers import FakeFrameSource, ean13_png


class TestPixelBuffer:
    """Tests for the RGBA buffer."""

    def test_shape_is_checked(self):
        with pytest.raises(ValueError):
            PixelBuffer(width=2, height=2, data=np.zeros((2, 3, 4), dtype=np.uint8))

    def test_dtype_is_checked(self):
        with pytest.raises(ValueError):
            PixelBuffer(width=2, height=2, data=np.zeros((2, 2, 4), dtype=np.float32))

    def test_data_is_read_only(self, white_buffer):
        with pytest.raises(ValueError):
            white_buffer.data[0, 0, 0] = 1

    def test_caller_array_stays_writable(self):
        """The buffer keeps its own copy instead of freezing the caller's array."""
        rgba = np.zeros((2, 3, 4), dtype=np.uint8)
        buffer = PixelBuffer(width=3, height=2, data=rgba)

        rgba[0, 0, 0] = 9

        assert rgba.flags.writeable
        assert buffer.data[0, 0, 0] == 0
        assert not buffer.data.flags.writeable

    def test_from_rgba_copies(self):
        rgba = np.zeros((1, 1, 4), dtype=np.uint8)
        buffer = PixelBuffer.from_rgba(rgba)
        rgba[0, 0, 0] = 9
        assert buffer.data[0, 0, 0] == 0

    def test_from_gray(self):
        buffer = PixelBuffer.from_gray(np.array([[10, 20, 30]], dtype=np.uint8))
        assert (buffer.width, buffer.height) == (3, 1)
        assert buffer.data[0, 1].tolist() == [20, 20, 20, 255]

    def test_luminance(self):
        rgba = np.array([[[255, 0, 0, 255], [0, 0, 255, 255]]], dtype=np.uint8)
        luma = PixelBuffer.from_rgba(rgba).luminance()
        assert luma[0, 0] == pytest.approx(0.299 * 255)
        assert luma[0, 1] == pytest.approx(0.114 * 255)

    def test_rotated_90_clockwise(self):
        gray = np.arange(6, dtype=np.uint8).reshape(2, 3)
        rotated = PixelBuffer.from_gray(gray).rotated_90()
        assert (rotated.width, rotated.height) == (2, 3)
        # (x, y) lands at row x, column height - 1 - y
        for y in range(2):
            for x in range(3):
                assert rotated.data[x, 1 - y, 0] == gray[y, x]


class TestLoaders:
    """Tests for still-image sources."""

    def test_load_image_converts_mode(self):
        image = Image.new("L", (5, 4), color=128)
        buffer = load_image(image)
        assert (buffer.width, buffer.height) == (5, 4)
        assert buffer.data[0, 0].tolist() == [128, 128, 128, 255]

    def test_load_image_rejects_other_types(self):
        with pytest.raises(AcquisitionError):
            load_image("not an image")

    def test_load_bytes(self):
        buffer = load_bytes(ean13_png("4006381333931"))
        assert buffer.width > 0 and buffer.height > 0

    @pytest.mark.parametrize("data", [b"", b"definitely not a png", b"\x89PNG\r\n\x1a\n\x00"])
    def test_load_bytes_rejects_corrupt(self, data):
        with pytest.raises(AcquisitionError):
            load_bytes(data)

    def test_load_data_url(self):
        url = to_data_url(ean13_png("4006381333931"))
        assert url.startswith("data:image/png;base64,")
        buffer = load_data_url(url)
        assert buffer.height == 120

    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com/a.png",
            "data:image/png;base64",
            "data:text/plain;base64,aGVsbG8=",
            "data:image/png,rawdata",
            "data:image/png;base64,aGVsbG8=",
        ],
    )
    def test_load_data_url_rejects(self, url):
        with pytest.raises(AcquisitionError):
            load_data_url(url)

    def test_load_file(self, tmp_path):
        path = tmp_path / "code.png"
        path.write_bytes(ean13_png("4006381333931"))
        assert load_file(path).height == 120

    def test_load_file_rejects_non_images(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("4006381333931")
        with pytest.raises(AcquisitionError):
            load_file(path)

    def test_load_file_missing(self, tmp_path):
        with pytest.raises(AcquisitionError):
            load_file(tmp_path / "missing.png")

    def test_find_images(self, tmp_path):
        (tmp_path / "a.png").write_bytes(b"x")
        (tmp_path / "b.JPG").write_bytes(b"x")
        (tmp_path / "c.txt").write_bytes(b"x")
        nested = tmp_path / "nested"
        nested.mkdir()
        (nested / "d.png").write_bytes(b"x")

        assert [p.name for p in find_images(tmp_path)] == ["a.png", "b.JPG"]
        assert len(find_images(tmp_path, recursive=True)) == 3

    def test_is_image_file(self, tmp_path):
        assert is_image_file(tmp_path / "x.webp")
        assert not is_image_file(tmp_path / "x.csv")


class TestCaptureFrame:
    """Tests for sampling a live source."""

    def test_not_ready_returns_none(self):
        source = FakeFrameSource(ready=False)
        source.open()
        assert capture_frame(source) is None

    def test_closed_source_raises(self):
        with pytest.raises(CameraError):
            capture_frame(FakeFrameSource())

    def test_empty_frame_returns_none(self):
        source = FakeFrameSource(frames=[np.zeros((0, 0, 3), dtype=np.uint8)])
        source.open()
        assert capture_frame(source) is None

    def test_bgr_frame_converted(self):
        frame = np.zeros((2, 2, 3), dtype=np.uint8)
        frame[..., 0] = 200  # blue
        source = FakeFrameSource(frames=[frame])
        source.open()
        buffer = capture_frame(source)
        assert buffer.data[0, 0].tolist() == [0, 0, 200, 255]

    def test_frame_to_buffer_gray(self):
        buffer = frame_to_buffer(np.full((3, 4), 50, dtype=np.uint8))
        assert (buffer.width, buffer.height) == (4, 3)
        assert buffer.data[0, 0].tolist() == [50, 50, 50, 255]
