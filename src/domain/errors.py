from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.domain.entities.outcome import OperationOutcome


class PixshopError(Exception):
    """Base class for every error raised by the editing core."""


class InvalidAsset(PixshopError, ValueError):
    pass


class InvalidOption(PixshopError, ValueError):
    pass


class EmptyHistory(PixshopError, ValueError):
    def __init__(self, message: str = "History is empty") -> None:
        super().__init__(message)


class AtOldestVersion(PixshopError, ValueError):
    def __init__(self, message: str = "Already at the oldest version") -> None:
        super().__init__(message)


class AtNewestVersion(PixshopError, ValueError):
    def __init__(self, message: str = "Already at the newest version") -> None:
        super().__init__(message)


class OperationInProgress(PixshopError):
    def __init__(self, message: str = "Another image operation is already in progress") -> None:
        super().__init__(message)


class MalformedResult(PixshopError):
    """The model answered, but the answer could not be parsed into the expected shape."""

    def __init__(self, message: str, raw_text: str | None = None) -> None:
        super().__init__(message)
        self.raw_text = raw_text


class OperationFailed(PixshopError):
    """Wraps a failure outcome (Blocked, StoppedEarly, NoImageReturned, TransportError)."""

    def __init__(self, outcome: OperationOutcome) -> None:
        super().__init__(outcome.message)
        self.outcome = outcome

    @property
    def reason(self) -> str:
        return type(self.outcome).__name__
