"""
Tests for the scanner CLI.
"""

import json

import pytest
from click.testing import CliRunner

from src.barcode.orchestrator import DetectionOrchestrator
from src.models.detection import DetectionMethod
from tools.scanner import main as scanner_main
from tools.scanner.main import cli, format_outcome
from tests.helpers import FakeDecoder, ean13_png

EAN = "4006381333931"


@pytest.fixture
def fake_orchestrator(monkeypatch, policy):
    def build():
        primary = FakeDecoder("zbar", DetectionMethod.PRIMARY_ZBAR, results=[EAN])
        fallback = FakeDecoder("opencv", DetectionMethod.FALLBACK_OPENCV)
        return DetectionOrchestrator(primary, fallback, policy)

    monkeypatch.setattr(scanner_main, "build_orchestrator", build)


class TestImageCommand:
    """Tests for `scan image`."""

    def test_prints_code(self, tmp_path, fake_orchestrator):
        path = tmp_path / "code.png"
        path.write_bytes(ean13_png(EAN))

        result = CliRunner().invoke(cli, ["image", str(path)])

        assert result.exit_code == 0
        assert EAN in result.output
        assert "[EAN-13]" in result.output

    def test_json_output(self, tmp_path, fake_orchestrator):
        path = tmp_path / "code.png"
        path.write_bytes(ean13_png(EAN))

        result = CliRunner().invoke(cli, ["--log-level", "WARNING", "image", str(path), "--json"])

        data = json.loads(result.stdout)
        assert data["code"] == EAN
        assert data["method"] == "primary_zbar"

    def test_bad_source_exits_nonzero(self, tmp_path, fake_orchestrator):
        path = tmp_path / "broken.png"
        path.write_bytes(b"not a png")

        result = CliRunner().invoke(cli, ["image", str(path)])

        assert result.exit_code == 1
        assert "Error" in result.output


class TestBatchCommand:
    """Tests for `scan batch`."""

    def test_summary(self, tmp_path, fake_orchestrator):
        for name in ["a.png", "b.png"]:
            (tmp_path / name).write_bytes(ean13_png(EAN))

        result = CliRunner().invoke(cli, ["batch", str(tmp_path)])

        assert result.exit_code == 0
        assert "a.png: " + EAN in result.output
        assert "Scanned 2 images, 1 distinct codes" in result.output

    def test_empty_directory(self, tmp_path, fake_orchestrator):
        result = CliRunner().invoke(cli, ["batch", str(tmp_path)])
        assert "No images found" in result.output


class TestFormatOutcome:
    """Tests for format_outcome."""

    def test_best_guess_marker(self):
        from src.models import DetectionOutcome

        outcome = DetectionOutcome(
            code="710243171417", method=DetectionMethod.HEURISTIC_HORIZONTAL
        )
        assert format_outcome(outcome, as_json=False).endswith("[best guess]")
