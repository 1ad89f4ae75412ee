"""
Domain-specific exception hierarchy for the reversal pipeline.

All exceptions inherit from ReverserError so callers can catch broadly
or narrowly as needed.  Each exception carries structured context
(stage, relevant number, etc.) for logging/debugging.

Per-record errors (DeviceUnresolved, PinVerificationFailed,
TransportFailure, BusinessRejection, MalformedArtifact) are caught at
the record boundary by the stages.  SourceUnavailable and anything
unexpected escape to whoever triggered the stage.
"""

from __future__ import annotations

from typing import Any


class ReverserError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(
        self,
        message: str,
        *,
        stage: int | None = None,
        relevant_number: str | None = None,
    ) -> None:
        self.stage = stage
        self.relevant_number = relevant_number
        super().__init__(message)


class SourceUnavailable(ReverserError):
    """The record spreadsheet is missing or unreadable."""
    pass


class SourceEmpty(ReverserError):
    """The record spreadsheet yielded zero usable rows."""
    pass


class DeviceUnresolved(ReverserError):
    """No device address is configured for the record's device number."""

    def __init__(self, message: str, *, device_number: str | None = None, **kwargs) -> None:
        self.device_number = device_number
        super().__init__(message, **kwargs)


class InvalidDeviceBindings(ReverserError):
    """The device binding configuration cannot be loaded."""
    pass


class PinVerificationFailed(ReverserError):
    """The PIN step failed in transport or returned a non-success code."""

    def __init__(self, message: str, *, code: str | None = None, **kwargs) -> None:
        self.code = code
        super().__init__(message, **kwargs)

    @property
    def is_wrong_code(self) -> bool:
        """True when the device answered, but not with the success code."""
        return self.code is not None


class TransportFailure(ReverserError):
    """The device could not be reached or answered with an unusable response."""

    def __init__(self, message: str, *, status_code: int | None = None, **kwargs) -> None:
        self.status_code = status_code
        super().__init__(message, **kwargs)


class BusinessRejection(ReverserError):
    """The device answered but without the required success marker."""

    def __init__(self, message: str, *, response_body: Any = None, **kwargs) -> None:
        self.response_body = response_body
        super().__init__(message, **kwargs)


class ArtifactNotFound(ReverserError):
    """A requested artifact does not exist."""
    pass


class MalformedArtifact(ReverserError):
    """A prior stage's artifact could not be parsed as a JSON document."""
    pass


class StageNotFound(ReverserError):
    """No stage is registered under the requested number."""
    pass
