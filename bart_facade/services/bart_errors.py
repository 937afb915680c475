"""BART-specific exception definitions."""

from __future__ import annotations


class BARTServiceError(Exception):
    """Generic wrapper for BART facade failures."""


class TransportError(BARTServiceError):
    """Raised when the BART API is unreachable, times out or answers with an error status."""


class ParseError(BARTServiceError):
    """Raised when a BART payload is malformed or lacks its expected structure."""


class StationNotFoundError(BARTServiceError):
    """Raised when a station abbreviation cannot be resolved."""


class NotReadyError(BARTServiceError):
    """Raised when a cached query runs before its snapshot was first refreshed."""


class FanOutBatchError(BARTServiceError):
    """Raised when a station-detail batch fails under its configured policy."""

    def __init__(self, kind: str, failures: dict[str, Exception], total: int):
        self.kind = kind
        self.failures = failures
        self.total = total
        super().__init__(
            f"Station {kind} batch failed for {len(failures)} of {total} stations."
        )


__all__ = [
    "BARTServiceError",
    "TransportError",
    "ParseError",
    "StationNotFoundError",
    "NotReadyError",
    "FanOutBatchError",
]
