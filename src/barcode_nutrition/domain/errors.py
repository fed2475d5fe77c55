"""Domain errors for barcode scanning, lookup, and scaling."""

from enum import Enum


class BarcodeNutritionError(Exception):
    """Base class for errors raised by this package."""


class CameraFailure(Enum):
    """Reasons a camera could not be opened for scanning."""

    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    NOT_SUPPORTED = "not_supported"
    IN_USE = "in_use"


_CAMERA_GUIDANCE = {
    CameraFailure.PERMISSION_DENIED: (
        "Camera permission denied. Allow camera access for this application, "
        "then try again."
    ),
    CameraFailure.NOT_FOUND: "No camera found on this device.",
    CameraFailure.NOT_SUPPORTED: "Camera not supported on this platform.",
    CameraFailure.IN_USE: "Camera is already in use by another application.",
}


class CameraUnavailable(BarcodeNutritionError):
    """The camera could not be opened; the scan session cannot start."""

    def __init__(self, reason: CameraFailure, detail: str | None = None) -> None:
        self.reason = reason
        self.detail = detail
        message = _CAMERA_GUIDANCE[reason]
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)

    @property
    def guidance(self) -> str:
        """User-facing remediation text for this failure."""
        return _CAMERA_GUIDANCE[self.reason]


class ScannerBusy(BarcodeNutritionError):
    """A scan session is already active on this scanner."""


class ProductNotFound(BarcodeNutritionError):
    """The lookup succeeded but the barcode is not registered upstream."""

    def __init__(self, barcode: str) -> None:
        self.barcode = barcode
        super().__init__(f"Product not found: {barcode}")


class LookupFailed(BarcodeNutritionError):
    """The product lookup failed in transport or while parsing the payload."""

    def __init__(self, barcode: str, cause: Exception) -> None:
        self.barcode = barcode
        self.cause = cause
        super().__init__(f"Failed to fetch product info for {barcode}: {cause}")


class InvalidServingSize(BarcodeNutritionError, ValueError):
    """A serving size or target quantity is not strictly positive."""

    def __init__(self, quantity: float) -> None:
        self.quantity = quantity
        super().__init__(f"Serving size must be greater than zero, got {quantity}")


class UnknownUnit(BarcodeNutritionError, ValueError):
    """A unit name has no known multiplier or conversion factor."""

    def __init__(self, unit: str) -> None:
        self.unit = unit
        super().__init__(f"Unknown unit: {unit}")
