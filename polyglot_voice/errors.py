"""Error taxonomy shared by the pipeline, the adapters and the CLI."""

from dataclasses import dataclass
from typing import Optional


class VoiceError(Exception):
    """Base class for every fatal error the CLI reports."""


class ConfigError(VoiceError):
    """Bad or missing CLI/environment input. Raised before any backend contact."""


@dataclass(eq=False)
class BackendError(VoiceError):
    """A call against the speech backend failed."""

    operation: str
    detail: str

    def __str__(self) -> str:
        return f"{self.operation} failed: {self.detail}"


@dataclass(eq=False)
class SpeechConnectionError(VoiceError):
    """The backend stayed unreachable for every connection attempt."""

    attempts: int
    last_error: Optional[BackendError] = None

    def __str__(self) -> str:
        msg = f"failed to connect to the speech backend after {self.attempts} attempts"
        if self.last_error is not None:
            msg += f": {self.last_error}"
        return msg


class InputReadError(VoiceError):
    """Reading the input stream failed (not end of stream)."""
