"""Camera barcode scanning sessions."""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from typing import Protocol

from barcode_nutrition.domain.errors import CameraUnavailable, ScannerBusy
from barcode_nutrition.domain.scanning import DecodeEvent, DecodeOutcome

_logger = logging.getLogger(__name__)


class FrameSource(Protocol):
    """A live video stream that yields frames."""

    async def open(self) -> None:
        """Open the device and wait for the first frame.

        Raises ``CameraUnavailable`` when the device cannot be used.
        """

    async def read_frame(self) -> object | None:
        """Return the next frame, or None once the stream has ended."""

    async def close(self) -> None:
        """Release the capture device."""


class FrameDecoder(Protocol):
    """Decodes barcodes from a single frame."""

    def decode(self, frame: object) -> DecodeEvent:
        """Return a found payload, a miss, or an error for the frame."""


async def decode_events(
    source: FrameSource, decoder: FrameDecoder, interval_seconds: float = 0.0
) -> AsyncIterator[DecodeEvent]:
    """Yield one decode event per frame until the source runs dry."""
    while True:
        try:
            frame = await source.read_frame()
        except Exception as exc:
            yield DecodeEvent.failed(exc)
        else:
            if frame is None:
                return
            yield await asyncio.to_thread(decoder.decode, frame)
        await asyncio.sleep(interval_seconds)


@dataclass
class BarcodeScanner:
    """Runs at most one scan session and reports at most one barcode per session."""

    decoder: FrameDecoder
    interval_seconds: float = 0.1
    _source: FrameSource | None = field(default=None, init=False)
    _task: asyncio.Task[None] | None = field(default=None, init=False)

    @property
    def active(self) -> bool:
        return self._source is not None

    async def start(
        self,
        source: FrameSource,
        on_barcode: Callable[[str], None],
        on_frame_error: Callable[[Exception], None],
        on_fatal: Callable[[CameraUnavailable], None],
    ) -> None:
        """Open the camera and begin sampling frames in the background.

        Camera failures are passed to ``on_fatal``; per-frame errors go to
        ``on_frame_error`` and do not stop sampling.
        """
        if self.active:
            raise ScannerBusy("A scan session is already active; call stop() first")
        self._source = source
        try:
            await source.open()
        except CameraUnavailable as exc:
            self._release(source)
            _logger.warning("Camera unavailable: %s", exc.reason.value)
            on_fatal(exc)
            return
        except BaseException:
            self._release(source)
            raise
        if self._source is not source:
            _logger.info("Scan stopped while the camera was opening")
            await source.close()
            return
        self._task = asyncio.create_task(
            self._sample(source, on_barcode, on_frame_error)
        )

    async def wait(self) -> None:
        """Wait until sampling ends, either by a report or end of stream."""
        if self._task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._task

    async def stop(self) -> None:
        """Stop sampling and release the camera. Safe to call repeatedly.

        A session still opening its camera is released by ``start`` once
        ``open`` returns.
        """
        task, source = self._task, self._source
        self._task, self._source = None, None
        if task is None:
            return
        if not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if source is not None:
            try:
                await source.close()
            except Exception:
                _logger.exception("Failed to release camera")

    async def _sample(
        self,
        source: FrameSource,
        on_barcode: Callable[[str], None],
        on_frame_error: Callable[[Exception], None],
    ) -> None:
        events = decode_events(source, self.decoder, self.interval_seconds)
        async with contextlib.aclosing(events):
            async for event in events:
                if event.outcome is DecodeOutcome.MISS:
                    continue
                if event.outcome is DecodeOutcome.ERROR and event.error is not None:
                    on_frame_error(event.error)
                    continue
                if event.outcome is DecodeOutcome.FOUND and event.payload:
                    _logger.info("Barcode detected: %s", event.payload)
                    on_barcode(event.payload)
                    return

    def _release(self, source: FrameSource) -> None:
        if self._source is source:
            self._source = None
