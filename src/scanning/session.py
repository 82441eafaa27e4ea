"""
Live-scan session.

State machine:

    IDLE -> INITIALIZING -> SCANNING -> DETECTED | ERROR -> IDLE

A session owns its frame source, its tick task and its per-method record of
the last accepted code. Everything is released on detection, on camera
failure and on stop(); stop() is idempotent.
"""

import asyncio
import contextlib
import inspect
from collections.abc import Awaitable, Callable
from enum import Enum

import structlog

from src.acquisition.camera import FrameSource, OpenCVCamera, capture_frame
from src.barcode.orchestrator import DetectionOrchestrator, build_orchestrator
from src.config import Settings, get_settings
from src.core.exceptions import AcquisitionError, CameraError
from src.models.detection import DetectionCandidate, DetectionMethod

logger = structlog.get_logger(__name__)

DetectCallback = Callable[[str, str], Awaitable[None] | None]
ErrorCallback = Callable[[CameraError], Awaitable[None] | None]
SourceFactory = Callable[[], FrameSource]


class ScanState(str, Enum):
    """Lifecycle state of a live-scan session."""

    IDLE = "idle"
    INITIALIZING = "initializing"
    SCANNING = "scanning"
    DETECTED = "detected"
    ERROR = "error"


async def _maybe_await(result) -> None:
    if inspect.isawaitable(result):
        await result


class ScanSession:
    """
    Continuously samples a frame source and runs the detection pipeline.

    Ticks run one after another in a single task, so a frame is always fully
    decoded (or abandoned) before the next one is sampled. A result that
    arrives after the session was stopped is discarded.

    Example:
        >>> session = ScanSession(orchestrator, camera_factory, on_detect=print)
        >>> await session.start()
        >>> ...
        >>> await session.stop()
    """

    def __init__(
        self,
        orchestrator: DetectionOrchestrator,
        source_factory: SourceFactory,
        on_detect: DetectCallback,
        on_error: ErrorCallback | None = None,
        tick_interval: float = 0.0,
        stop_on_detect: bool = True,
    ):
        """
        Initialize session.

        Args:
            orchestrator: Pipeline run on every sampled frame
            source_factory: Creates the frame source when the session starts
            on_detect: Called with (code, method) for each accepted code
            on_error: Called with the CameraError that ended the session
            tick_interval: Seconds to wait between ticks (0 = next loop turn)
            stop_on_detect: Stop after the first accepted code. When False
                the session keeps scanning and only reports codes that differ
                from the last one accepted for the same method.
        """
        self.orchestrator = orchestrator
        self.source_factory = source_factory
        self.on_detect = on_detect
        self.on_error = on_error
        self.tick_interval = tick_interval
        self.stop_on_detect = stop_on_detect

        self.state = ScanState.IDLE
        self.active = False
        self.last_accepted: dict[DetectionMethod, str] = {}
        self.last_error: CameraError | None = None

        self._source: FrameSource | None = None
        self._task: asyncio.Task | None = None
        self._finished = asyncio.Event()

    @property
    def has_source(self) -> bool:
        return self._source is not None

    @property
    def has_timer(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """
        Open the frame source and begin ticking.

        Camera failures move the session to ERROR and are reported through
        on_error; they are not raised.
        """
        if self.state != ScanState.IDLE:
            logger.warning("Scan session already started", state=self.state.value)
            return

        self.state = ScanState.INITIALIZING
        self.last_error = None
        self._finished.clear()
        logger.info("Starting live scan")

        source = None
        try:
            source = self.source_factory()
            self._source = source
            await asyncio.to_thread(source.open)
        except Exception as e:
            if self.state != ScanState.INITIALIZING:
                # stop() ran while the camera was opening
                logger.debug("Ignoring camera failure after stop", error=str(e))
                await self._release_local(source)
                return
            error = e if isinstance(e, CameraError) else CameraError(f"Camera access failed: {e}")
            await self._fail(error)
            return

        if self.state != ScanState.INITIALIZING:
            # stop() ran while the camera was opening
            await self._release_local(source)
            return

        self.active = True
        self.state = ScanState.SCANNING
        self._task = asyncio.create_task(self._run(), name="live-scan")
        logger.info("Live scan running", tick_interval=self.tick_interval)

    async def stop(self) -> None:
        """
        Stop scanning and release everything. Safe to call in any state and
        more than once.
        """
        was = self.state
        self.active = False
        await self._cancel_timer()
        await self._release_source()
        self.last_accepted.clear()
        self.state = ScanState.IDLE
        self._finished.set()
        if was != ScanState.IDLE:
            logger.info("Live scan stopped", previous_state=was.value)

    async def run_until_detected(self, timeout: float | None = None) -> DetectionCandidate | None:
        """
        Start the session and wait for the first detection or failure.

        Returns:
            The accepted candidate, or None on error, timeout or stop
        """
        result: list[DetectionCandidate] = []
        user_callback = self.on_detect

        async def capture(code: str, method: str) -> None:
            result.append(DetectionCandidate(code=code, method=DetectionMethod(method)))
            await _maybe_await(user_callback(code, method))

        self.on_detect = capture
        try:
            await self.start()
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._finished.wait(), timeout)
        finally:
            self.on_detect = user_callback
            await self.stop()
        return result[0] if result else None

    async def _run(self) -> None:
        while self.active:
            try:
                await self._tick()
            except Exception as e:
                logger.error("Live scan tick failed", error=str(e))
            if not self.active:
                break
            await asyncio.sleep(self.tick_interval)

    async def _tick(self) -> None:
        source = self._source
        if source is None:
            return

        try:
            buffer = await asyncio.to_thread(capture_frame, source)
        except CameraError as e:
            await self._fail(e)
            return
        except AcquisitionError as e:
            logger.debug("Skipping unreadable frame", error=e.message)
            return

        if buffer is None:
            # No complete frame buffered yet
            return

        candidate = await self.orchestrator.detect(buffer, copy=False)
        if not self.active:
            if candidate is not None:
                logger.debug("Discarding detection after stop", code=candidate.code)
            return
        if candidate is None:
            return

        if self.last_accepted.get(candidate.method) == candidate.code:
            logger.debug("Duplicate detection suppressed", method=candidate.method.value)
            return

        self.last_accepted[candidate.method] = candidate.code
        await self._accept(candidate)

    async def _accept(self, candidate: DetectionCandidate) -> None:
        logger.info(
            "Live scan detected code",
            code=candidate.code,
            method=candidate.method.value,
        )
        if self.stop_on_detect:
            self.state = ScanState.DETECTED
            self.active = False
            await self._teardown()

        await self.orchestrator.copy_code(candidate.code)
        try:
            await _maybe_await(self.on_detect(candidate.code, candidate.method.value))
        finally:
            if self.stop_on_detect:
                self._finished.set()

    async def _fail(self, error: CameraError) -> None:
        logger.error("Live scan failed", error=error.message)
        self.state = ScanState.ERROR
        self.active = False
        self.last_error = error
        await self._teardown()
        self._finished.set()
        if self.on_error is not None:
            try:
                await _maybe_await(self.on_error(error))
            except Exception as e:
                logger.error("Error callback raised", error=str(e))

    async def _teardown(self) -> None:
        # The timer goes first so no tick can sample a released source
        await self._cancel_timer()
        await self._release_source()
        self.last_accepted.clear()

    async def _cancel_timer(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        if task is asyncio.current_task():
            # Called from inside a tick; the loop exits once active is False
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _release_source(self) -> None:
        source, self._source = self._source, None
        await self._release_local(source)

    async def _release_local(self, source: FrameSource | None) -> None:
        if source is None:
            return
        try:
            await asyncio.to_thread(source.release)
        except Exception as e:
            logger.warning("Error releasing camera", error=str(e))


def create_camera_session(
    on_detect: DetectCallback,
    on_error: ErrorCallback | None = None,
    settings: Settings | None = None,
    orchestrator: DetectionOrchestrator | None = None,
    stop_on_detect: bool = True,
) -> ScanSession:
    """Build a session scanning the configured OpenCV camera."""
    settings = settings or get_settings()

    def camera_factory() -> FrameSource:
        return OpenCVCamera(
            index=settings.camera_index,
            width=settings.camera_width,
            height=settings.camera_height,
            open_retries=settings.camera_open_retries,
        )

    return ScanSession(
        orchestrator=orchestrator or build_orchestrator(settings),
        source_factory=camera_factory,
        on_detect=on_detect,
        on_error=on_error,
        tick_interval=settings.tick_interval_seconds,
        stop_on_detect=stop_on_detect,
    )
