"""Tests for barcode scan sessions."""

import asyncio
import threading

import pytest

from barcode_nutrition.domain.errors import (
    CameraFailure,
    CameraUnavailable,
    ScannerBusy,
)
from barcode_nutrition.domain.scanning import DecodeEvent, DecodeOutcome
from barcode_nutrition.services.scanner import BarcodeScanner, decode_events
from tests.conftest import FakeFrameDecoder, FakeFrameSource


class _Recorder:
    def __init__(self) -> None:
        self.barcodes: list[str] = []
        self.frame_errors: list[Exception] = []
        self.fatal: list[CameraUnavailable] = []

    def on_barcode(self, barcode: str) -> None:
        self.barcodes.append(barcode)

    def on_frame_error(self, exc: Exception) -> None:
        self.frame_errors.append(exc)

    def on_fatal(self, exc: CameraUnavailable) -> None:
        self.fatal.append(exc)


async def _run_session(
    scanner: BarcodeScanner, source: FakeFrameSource, recorder: _Recorder
) -> None:
    try:
        await scanner.start(
            source, recorder.on_barcode, recorder.on_frame_error, recorder.on_fatal
        )
        await scanner.wait()
    finally:
        await scanner.stop()


def test_single_report_per_session() -> None:
    source = FakeFrameSource(frames=["4006381333931"] * 50)
    scanner = BarcodeScanner(FakeFrameDecoder(), interval_seconds=0)
    recorder = _Recorder()

    asyncio.run(_run_session(scanner, source, recorder))

    assert recorder.barcodes == ["4006381333931"]
    assert source.close_calls == 1


def test_frame_errors_do_not_stop_sampling() -> None:
    source = FakeFrameSource(frames=[OSError("read failed"), object(), "12345678"])
    scanner = BarcodeScanner(FakeFrameDecoder(), interval_seconds=0)
    recorder = _Recorder()

    asyncio.run(_run_session(scanner, source, recorder))

    assert len(recorder.frame_errors) == 1
    assert recorder.barcodes == ["12345678"]
    assert recorder.fatal == []


def test_camera_failure_goes_to_fatal_callback() -> None:
    source = FakeFrameSource(
        open_error=CameraUnavailable(CameraFailure.PERMISSION_DENIED)
    )
    scanner = BarcodeScanner(FakeFrameDecoder(), interval_seconds=0)
    recorder = _Recorder()

    asyncio.run(_run_session(scanner, source, recorder))

    assert len(recorder.fatal) == 1
    assert recorder.fatal[0].reason is CameraFailure.PERMISSION_DENIED
    assert "permission" in recorder.fatal[0].guidance.lower()
    assert not scanner.active
    assert recorder.frame_errors == []


def test_stop_is_idempotent() -> None:
    source = FakeFrameSource(frames=[object()] * 5)
    scanner = BarcodeScanner(FakeFrameDecoder(), interval_seconds=0)
    recorder = _Recorder()

    async def scenario() -> None:
        await scanner.start(
            source, recorder.on_barcode, recorder.on_frame_error, recorder.on_fatal
        )
        await scanner.stop()
        await scanner.stop()

    asyncio.run(scenario())

    assert source.close_calls == 1
    assert not scanner.active


def test_second_start_requires_stop() -> None:
    scanner = BarcodeScanner(FakeFrameDecoder(), interval_seconds=0)
    recorder = _Recorder()

    async def scenario() -> None:
        first = FakeFrameSource(frames=["12345678"])
        await scanner.start(
            first, recorder.on_barcode, recorder.on_frame_error, recorder.on_fatal
        )
        await scanner.wait()
        with pytest.raises(ScannerBusy):
            await scanner.start(
                FakeFrameSource(),
                recorder.on_barcode,
                recorder.on_frame_error,
                recorder.on_fatal,
            )
        await scanner.stop()
        await scanner.start(
            FakeFrameSource(frames=["87654321"]),
            recorder.on_barcode,
            recorder.on_frame_error,
            recorder.on_fatal,
        )
        await scanner.wait()
        await scanner.stop()

    asyncio.run(scenario())

    assert recorder.barcodes == ["12345678", "87654321"]


def test_decode_events_stream() -> None:
    source = FakeFrameSource(frames=[object(), ValueError("bad"), "99999999"])

    async def collect() -> list[DecodeOutcome]:
        events = decode_events(source, FakeFrameDecoder())
        return [event.outcome async for event in events]

    outcomes = asyncio.run(collect())

    assert outcomes == [DecodeOutcome.MISS, DecodeOutcome.ERROR, DecodeOutcome.FOUND]


def test_overlapping_starts_claim_one_session() -> None:
    scanner = BarcodeScanner(FakeFrameDecoder(), interval_seconds=0)
    recorder = _Recorder()
    first = FakeFrameSource(frames=[object()] * 3, open_delay=0.05)
    second = FakeFrameSource(frames=[object()] * 3, open_delay=0.05)

    async def scenario() -> list[object]:
        results = await asyncio.gather(
            scanner.start(
                first, recorder.on_barcode, recorder.on_frame_error, recorder.on_fatal
            ),
            scanner.start(
                second, recorder.on_barcode, recorder.on_frame_error, recorder.on_fatal
            ),
            return_exceptions=True,
        )
        await scanner.stop()
        return results

    results = asyncio.run(scenario())

    assert results[0] is None
    assert isinstance(results[1], ScannerBusy)
    assert first.close_calls == 1
    assert not second.opened
    assert second.close_calls == 0
    assert not scanner.active


def test_stop_while_opening_releases_camera() -> None:
    scanner = BarcodeScanner(FakeFrameDecoder(), interval_seconds=0)
    recorder = _Recorder()
    source = FakeFrameSource(frames=["12345678"], open_delay=0.05)

    async def scenario() -> None:
        starting = asyncio.create_task(
            scanner.start(
                source, recorder.on_barcode, recorder.on_frame_error, recorder.on_fatal
            )
        )
        await asyncio.sleep(0)
        assert scanner.active
        await scanner.stop()
        await starting

    asyncio.run(scenario())

    assert source.opened
    assert source.close_calls == 1
    assert source.read_calls == 0
    assert recorder.barcodes == []
    assert not scanner.active


def test_decode_runs_off_the_event_loop_thread() -> None:
    loop_threads: list[int] = []
    decode_threads: list[int] = []

    class RecordingDecoder(FakeFrameDecoder):
        def decode(self, frame: object) -> DecodeEvent:
            decode_threads.append(threading.get_ident())
            return super().decode(frame)

    async def collect() -> None:
        loop_threads.append(threading.get_ident())
        source = FakeFrameSource(frames=["12345678"])
        async for _event in decode_events(source, RecordingDecoder()):
            pass

    asyncio.run(collect())

    assert decode_threads
    assert decode_threads[0] != loop_threads[0]
