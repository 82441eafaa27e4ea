"""
Detection orchestrator.

Runs the decoding stages strictly in priority order and stops at the first
stage that yields a policy-conformant code:

1. Primary engine (ZBar)
2. Fallback engine (OpenCV), after an optional delay
3. Basic pattern decoder on the contrast-stretched buffer
4. Basic pattern decoder on the raw buffer, only if stage 3 found no guard
"""

import asyncio
from collections.abc import Callable

import structlog

from src.acquisition.buffer import PixelBuffer
from src.barcode.engines import Decoder, OpenCVDecoder, ZBarDecoder
from src.barcode.heuristic import BasicPatternResult, Orientation, decode_basic_pattern
from src.barcode.preprocess import stretch_contrast
from src.barcode.validator import ValidationPolicy, is_valid_barcode, normalize_barcode
from src.clipboard import copy_to_clipboard
from src.config import Settings, get_settings
from src.core.exceptions import ValidationRejected
from src.models.detection import (
    NO_CODE_MESSAGE,
    DetectionCandidate,
    DetectionMethod,
    DetectionOutcome,
)

logger = structlog.get_logger(__name__)

ClipboardWriter = Callable[[str], bool]

HEURISTIC_METHODS = {
    Orientation.HORIZONTAL: DetectionMethod.HEURISTIC_HORIZONTAL,
    Orientation.VERTICAL: DetectionMethod.HEURISTIC_VERTICAL,
}


class DetectionOrchestrator:
    """
    Sequences the decoders and applies the validation policy.

    At most one candidate is returned per call; results are never merged
    across stages. Calls are serialized so two frames never run through the
    pipeline at the same time.
    """

    def __init__(
        self,
        primary: Decoder,
        fallback: Decoder,
        policy: ValidationPolicy,
        fallback_delay: float = 0.0,
        clipboard: ClipboardWriter | None = None,
    ):
        """
        Initialize orchestrator.

        Args:
            primary: Engine always attempted first
            fallback: Engine attempted only when the primary finds nothing
            policy: Validation policy applied to every stage
            fallback_delay: Seconds to wait before the fallback engine
            clipboard: Called with each accepted code; failures are ignored
        """
        self.primary = primary
        self.fallback = fallback
        self.policy = policy
        self.fallback_delay = fallback_delay
        self.clipboard = clipboard
        self._lock = asyncio.Lock()

    async def detect(self, buffer: PixelBuffer, copy: bool = True) -> DetectionCandidate | None:
        """
        Run all stages until one yields an accepted code.

        Args:
            buffer: Frame to decode
            copy: Copy an accepted code to the clipboard. Callers that may
                still discard the result pass False and call copy_code later.

        Returns:
            The accepted candidate, or None when every stage came up empty
        """
        async with self._lock:
            candidate = await self._run_stages(buffer)

        if candidate is not None:
            logger.info("Code accepted", code=candidate.code, method=candidate.method.value)
            if copy:
                await self.copy_code(candidate.code)
        else:
            logger.debug("No code detected", width=buffer.width, height=buffer.height)
        return candidate

    async def scan(self, buffer: PixelBuffer) -> DetectionOutcome:
        """Run detect() and wrap the result for the host."""
        candidate = await self.detect(buffer)
        if candidate is None:
            return DetectionOutcome(message=NO_CODE_MESSAGE)
        return annotate(candidate)

    async def _run_stages(self, buffer: PixelBuffer) -> DetectionCandidate | None:
        candidate = await self._run_engine(self.primary, buffer)
        if candidate is not None:
            return candidate

        logger.debug("Primary engine found nothing, trying fallback", engine=self.fallback.name)
        if self.fallback_delay > 0:
            await asyncio.sleep(self.fallback_delay)

        candidate = await self._run_engine(self.fallback, buffer)
        if candidate is not None:
            return candidate

        preprocessed = await asyncio.to_thread(stretch_contrast, buffer)
        candidate, matched = await self._run_heuristic(preprocessed, stage="preprocessed")
        if candidate is not None or matched:
            return candidate

        candidate, _ = await self._run_heuristic(buffer, stage="raw")
        return candidate

    async def _run_engine(self, engine: Decoder, buffer: PixelBuffer) -> DetectionCandidate | None:
        try:
            codes = await engine.decode(buffer)
        except Exception as e:
            logger.warning("Decoder failed", engine=engine.name, error=str(e))
            return None

        for code in codes or []:
            if self._accepts(code, engine.name):
                return DetectionCandidate(code=code, method=engine.method)
        return None

    async def _run_heuristic(
        self,
        buffer: PixelBuffer,
        stage: str,
    ) -> tuple[DetectionCandidate | None, bool]:
        """Return (candidate, guard_matched) for one basic pattern pass."""
        try:
            result: BasicPatternResult = await asyncio.to_thread(decode_basic_pattern, buffer)
        except Exception as e:
            logger.warning("Basic pattern decoder failed", stage=stage, error=str(e))
            return None, False

        logger.debug("Basic pattern result", stage=stage, result=result.text)

        if not result.matched:
            # Diagnostic bit strings are never valid codes
            self._accepts(result.text, f"basic_{stage}")
            return None, False

        method = HEURISTIC_METHODS[result.orientation]
        if self._accepts(result.digits, f"basic_{stage}"):
            return DetectionCandidate(code=result.digits, method=method), True
        return None, True

    def _accepts(self, code: str | None, stage: str) -> bool:
        try:
            self.policy.check(code)
        except ValidationRejected as e:
            logger.debug("Candidate rejected", stage=stage, code=e.code, reason=e.reason)
            return False
        return True

    async def copy_code(self, code: str) -> None:
        """Best-effort clipboard copy; never raises."""
        if self.clipboard is None:
            return
        try:
            copied = await asyncio.to_thread(self.clipboard, code)
        except Exception as e:
            logger.warning("Clipboard copy failed", error=str(e))
            return
        if not copied:
            logger.warning("Could not copy code to clipboard automatically")


def annotate(candidate: DetectionCandidate) -> DetectionOutcome:
    """Attach product-code symbology and checksum info to a candidate."""
    checksum_valid, symbology, _ = is_valid_barcode(candidate.code)
    return DetectionOutcome(
        code=candidate.code,
        method=candidate.method,
        symbology=symbology,
        checksum_valid=checksum_valid,
        normalized_code=normalize_barcode(candidate.code, symbology),
    )


def build_orchestrator(settings: Settings | None = None) -> DetectionOrchestrator:
    """Wire the production engines and policy from settings."""
    settings = settings or get_settings()
    return DetectionOrchestrator(
        primary=ZBarDecoder(),
        fallback=OpenCVDecoder(),
        policy=ValidationPolicy.from_settings(settings),
        fallback_delay=settings.fallback_delay_seconds,
        clipboard=copy_to_clipboard if settings.scan_copy_to_clipboard else None,
    )
