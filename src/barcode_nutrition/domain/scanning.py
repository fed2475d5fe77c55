"""Domain models for camera barcode scanning."""

from dataclasses import dataclass
from enum import Enum


class DecodeOutcome(Enum):
    """Result kind for a single frame decode attempt."""

    FOUND = "found"
    MISS = "miss"
    ERROR = "error"


@dataclass(frozen=True)
class DecodeEvent:
    """Outcome of decoding one video frame."""

    outcome: DecodeOutcome
    payload: str | None = None
    error: Exception | None = None

    @classmethod
    def found(cls, payload: str) -> "DecodeEvent":
        return cls(outcome=DecodeOutcome.FOUND, payload=payload)

    @classmethod
    def miss(cls) -> "DecodeEvent":
        return cls(outcome=DecodeOutcome.MISS)

    @classmethod
    def failed(cls, error: Exception) -> "DecodeEvent":
        return cls(outcome=DecodeOutcome.ERROR, error=error)
