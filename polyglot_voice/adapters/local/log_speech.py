"""LogSpeechBackend — "speaks" by logging each utterance (dry runs, no audio stack)."""

import logging
from typing import Optional

from polyglot_voice.domain.models import SessionState
from polyglot_voice.errors import BackendError
from polyglot_voice.ports.speech import PlaybackHandle, SpeechBackendPort, SpeechSessionPort

logger = logging.getLogger(__name__)


class CompletedPlayback(PlaybackHandle):
    """Handle for playback that finished before speak() returned."""

    def wait(self, timeout: Optional[float] = None) -> None:
        return None


class LogSpeechSession(SpeechSessionPort):
    def __init__(self):
        self._state = SessionState.CONNECTED
        self._active_language: Optional[str] = None
        self._notifications = False
        self._client: Optional[str] = None
        self._output_module: Optional[str] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def active_language(self) -> Optional[str]:
        return self._active_language

    @property
    def notifications_enabled(self) -> bool:
        return self._notifications

    def _require_open(self, operation: str) -> None:
        if self._state is not SessionState.CONNECTED:
            raise BackendError(operation, f"session is {self._state.value}")

    def configure(self, client_name: str, component_name: str, app_name: str) -> None:
        self._require_open("configure")
        self._client = f"{app_name}:{client_name}:{component_name}"
        logger.info(f"Client identity: {self._client}")

    def set_output_module(self, name: str) -> None:
        self._require_open("set_output_module")
        self._output_module = name
        logger.info(f"Output module: {name}")

    def enable_event_notifications(self, enabled: bool) -> None:
        self._require_open("enable_event_notifications")
        self._notifications = enabled

    def set_language(self, code: str) -> None:
        self._require_open("set_language")
        self._active_language = code

    def speak(self, text: str) -> PlaybackHandle:
        self._require_open("speak")
        logger.info(f"[{self._active_language or '??'}] {text}")
        return CompletedPlayback()

    def close(self) -> None:
        if self._state is SessionState.CLOSED:
            return
        self._state = SessionState.CLOSED
        logger.info("Log speech session closed")


class LogSpeechBackend(SpeechBackendPort):
    def open(self) -> SpeechSessionPort:
        return LogSpeechSession()

    def name(self) -> str:
        return "log"
