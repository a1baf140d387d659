"""Exception types shared across switop packages."""

from __future__ import annotations


class SwitopError(Exception):
    """Base class for switop failures that callers are expected to handle."""


class SamplerStartError(SwitopError):
    """The telemetry subprocess could not be launched."""

    def __init__(self, command: list[str], reason: str) -> None:
        self.command = list(command)
        self.reason = reason
        super().__init__(f"failed to start telemetry source {' '.join(command)!r}: {reason}")
