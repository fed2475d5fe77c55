"""OpenCV camera source and pyzbar frame decoder."""

import asyncio
import logging
from dataclasses import dataclass, field

import cv2
from pyzbar import pyzbar
from pyzbar.pyzbar import ZBarSymbol

from barcode_nutrition.domain.errors import CameraFailure, CameraUnavailable
from barcode_nutrition.domain.scanning import DecodeEvent
from barcode_nutrition.services.scanner import FrameDecoder, FrameSource

PRODUCT_SYMBOLS = (ZBarSymbol.EAN13, ZBarSymbol.EAN8, ZBarSymbol.UPCA, ZBarSymbol.UPCE)

_logger = logging.getLogger(__name__)


@dataclass
class OpenCvFrameSource(FrameSource):
    """Video frames from a local camera via ``cv2.VideoCapture``."""

    device_index: int = 0
    width: int = 1280
    height: int = 720
    _capture: cv2.VideoCapture | None = field(default=None, init=False)

    async def open(self) -> None:
        """Open the camera and wait for the first frame."""
        try:
            capture = await asyncio.to_thread(cv2.VideoCapture, self.device_index)
        except PermissionError as exc:
            raise CameraUnavailable(CameraFailure.PERMISSION_DENIED, str(exc)) from exc
        except cv2.error as exc:
            raise CameraUnavailable(CameraFailure.NOT_SUPPORTED, str(exc)) from exc
        if not capture.isOpened():
            capture.release()
            raise CameraUnavailable(CameraFailure.NOT_FOUND)
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        ok, _ = await asyncio.to_thread(capture.read)
        if not ok:
            capture.release()
            raise CameraUnavailable(CameraFailure.IN_USE)
        self._capture = capture
        _logger.info("Camera %s opened", self.device_index)

    async def read_frame(self) -> object | None:
        """Read the next frame; None once the camera has been closed."""
        if self._capture is None:
            return None
        ok, frame = await asyncio.to_thread(self._capture.read)
        if not ok:
            raise RuntimeError("Camera frame read failed")
        return frame

    async def close(self) -> None:
        """Release the camera."""
        capture, self._capture = self._capture, None
        if capture is not None:
            await asyncio.to_thread(capture.release)


@dataclass
class PyzbarFrameDecoder(FrameDecoder):
    """Decode retail product barcodes with zbar."""

    symbols: tuple[ZBarSymbol, ...] = PRODUCT_SYMBOLS

    def decode(self, frame: object) -> DecodeEvent:
        """Decode the first barcode in a BGR or grayscale frame."""
        try:
            image = frame
            if getattr(frame, "ndim", 2) == 3:
                image = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
            results = pyzbar.decode(image, symbols=list(self.symbols))
        except Exception as exc:
            return DecodeEvent.failed(exc)
        if not results:
            return DecodeEvent.miss()
        return DecodeEvent.found(results[0].data.decode("ascii"))
