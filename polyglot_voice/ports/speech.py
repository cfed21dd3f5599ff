"""Speech ports — abstract interfaces for speech-output backends.

A backend opens sessions; a session is the stateful connection the pipeline
drives; a playback handle represents one in-flight utterance. Every
operation raises errors.BackendError on failure.
"""

from abc import ABC, abstractmethod
from typing import Optional

from polyglot_voice.domain.models import SessionState


class PlaybackHandle(ABC):
    @abstractmethod
    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until playback finishes. Raises BackendError on timeout."""


class SpeechSessionPort(ABC):
    @property
    @abstractmethod
    def state(self) -> SessionState:
        """Connection state of the session."""

    @property
    @abstractmethod
    def active_language(self) -> Optional[str]:
        """Language code last accepted by the backend, or None."""

    @property
    @abstractmethod
    def notifications_enabled(self) -> bool:
        """Whether completion events are delivered (required for wait())."""

    @abstractmethod
    def configure(self, client_name: str, component_name: str, app_name: str) -> None:
        """Set the client identity reported to the backend."""

    @abstractmethod
    def set_output_module(self, name: str) -> None:
        """Select the synthesizer module used for output."""

    @abstractmethod
    def enable_event_notifications(self, enabled: bool) -> None:
        """Turn completion events on or off."""

    @abstractmethod
    def set_language(self, code: str) -> None:
        """Switch the active output language (ISO 639-1 code)."""

    @abstractmethod
    def speak(self, text: str) -> PlaybackHandle:
        """Queue text for playback and return its handle."""

    @abstractmethod
    def close(self) -> None:
        """Release backend resources. Calling it twice is a no-op."""


class SpeechBackendPort(ABC):
    @abstractmethod
    def open(self) -> SpeechSessionPort:
        """Open a new session. Raises BackendError if the backend is unreachable."""

    @abstractmethod
    def name(self) -> str:
        """Human-readable backend name for log messages."""
