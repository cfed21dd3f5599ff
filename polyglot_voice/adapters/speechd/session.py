"""SpeechdSession — speech output through Speech Dispatcher.

The speechd bindings ship with speech-dispatcher itself (python3-speechd on
Debian/Ubuntu). Completion is observed through SSIP event notifications:
END and CANCEL callbacks arrive on the client's communication thread and
release the waiting PlaybackHandle.
"""

import logging
import threading
from typing import Optional

import speechd

from polyglot_voice.domain.models import SessionState
from polyglot_voice.errors import BackendError
from polyglot_voice.ports.speech import PlaybackHandle, SpeechBackendPort, SpeechSessionPort

logger = logging.getLogger(__name__)

SPEECHD_ERRORS = (speechd.SSIPError, speechd.SpawnError, OSError)
COMPLETION_EVENTS = (speechd.CallbackType.END, speechd.CallbackType.CANCEL)


class SpeechdPlayback(PlaybackHandle):
    def __init__(self, message_id: Optional[str] = None):
        self.message_id = message_id
        self._done = threading.Event()
        self.cancelled = False

    def on_event(self, callback_type, **kwargs) -> None:
        if callback_type == speechd.CallbackType.CANCEL:
            self.cancelled = True
        if callback_type in COMPLETION_EVENTS:
            self._done.set()

    def wait(self, timeout: Optional[float] = None) -> None:
        if not self._done.wait(timeout):
            raise BackendError("wait", f"playback of message {self.message_id} did not finish within {timeout}s")
        if self.cancelled:
            logger.debug(f"Message {self.message_id} was cancelled by the server")


class UnobservedPlayback(PlaybackHandle):
    """Returned when notifications are off: completion cannot be observed."""

    def wait(self, timeout: Optional[float] = None) -> None:
        return None


class SpeechdSession(SpeechSessionPort):
    def __init__(self, client, identity: tuple):
        self._client = client
        self._identity = identity
        self._state = SessionState.CONNECTED
        self._active_language: Optional[str] = None
        self._notifications = False
        self._close_lock = threading.Lock()

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
        identity = (client_name, component_name, app_name)
        if identity == self._identity:
            logger.debug(f"Client identity already set: {app_name}:{client_name}:{component_name}")
            return
        try:
            # SSIPClient only sets CLIENT_NAME in its constructor.
            self._client._conn.send_command(
                "SET", speechd.Scope.SELF, "CLIENT_NAME", f"{app_name}:{client_name}:{component_name}"
            )
        except SPEECHD_ERRORS as e:
            raise BackendError("configure", str(e)) from e
        self._identity = identity

    def set_output_module(self, name: str) -> None:
        self._require_open("set_output_module")
        try:
            self._client.set_output_module(name)
        except SPEECHD_ERRORS as e:
            raise BackendError("set_output_module", f"module {name!r}: {e}") from e
        logger.info(f"Speech Dispatcher output module: {name}")

    def enable_event_notifications(self, enabled: bool) -> None:
        # The client subscribes to every event type on connect; the flag
        # decides whether speak() registers a completion callback.
        self._require_open("enable_event_notifications")
        self._notifications = enabled

    def set_language(self, code: str) -> None:
        self._require_open("set_language")
        try:
            self._client.set_language(code)
        except SPEECHD_ERRORS as e:
            raise BackendError("set_language", f"language {code!r}: {e}") from e
        self._active_language = code

    def speak(self, text: str) -> PlaybackHandle:
        self._require_open("speak")
        if not self._notifications:
            try:
                self._client.speak(text)
            except SPEECHD_ERRORS as e:
                raise BackendError("speak", str(e)) from e
            return UnobservedPlayback()

        playback = SpeechdPlayback()
        try:
            result = self._client.speak(text, callback=playback.on_event, event_types=COMPLETION_EVENTS)
        except SPEECHD_ERRORS as e:
            raise BackendError("speak", str(e)) from e
        playback.message_id = _message_id(result)
        return playback

    def close(self) -> None:
        with self._close_lock:
            if self._state is SessionState.CLOSED:
                return
            self._state = SessionState.CLOSED
        try:
            self._client.close()
        except SPEECHD_ERRORS as e:
            raise BackendError("close", str(e)) from e
        logger.info("Speech Dispatcher session closed")


class SpeechdBackend(SpeechBackendPort):
    def __init__(self, client_name: str, component_name: str, app_name: str):
        self._identity = (client_name, component_name, app_name)

    def open(self) -> SpeechSessionPort:
        client_name, component_name, app_name = self._identity
        try:
            client = speechd.SSIPClient(client_name, component=component_name, user=app_name)
        except SPEECHD_ERRORS as e:
            raise BackendError("open", str(e)) from e
        return SpeechdSession(client, self._identity)

    def name(self) -> str:
        return "Speech Dispatcher"


def _message_id(result) -> Optional[str]:
    # speak() returns the server reply (code, msg, data); data holds the message id
    try:
        return result[2][0]
    except (TypeError, IndexError):
        return None
