"""Pyttsx3Session — speech output through pyttsx3's platform drivers.

pyttsx3 has no client identity or notification channel; say() queues text
and runAndWait() plays the queue synchronously, so completion is reached
when the handle's wait() returns. The output module is the pyttsx3 driver
name, and languages are selected by picking a voice that advertises the
requested ISO 639-1 code.
"""

import logging
import re
from typing import Optional

import pyttsx3

from polyglot_voice.domain.models import SessionState
from polyglot_voice.errors import BackendError
from polyglot_voice.ports.speech import PlaybackHandle, SpeechBackendPort, SpeechSessionPort

logger = logging.getLogger(__name__)

PYTTSX3_ERRORS = (RuntimeError, ImportError, OSError)

# Speech Dispatcher module names that map onto a pyttsx3 driver
DRIVER_ALIASES = {
    "espeak-ng": "espeak",
    "espeak-ng-mbrola": "espeak",
}
KNOWN_DRIVERS = {"espeak", "sapi5", "nsss", "avspeech", "dummy"}


def _voice_tags(voice) -> list[str]:
    tags = []
    for lang in getattr(voice, "languages", None) or []:
        if isinstance(lang, bytes):
            lang = lang.decode("utf-8", "ignore")
        # espeak prefixes the tag with a priority byte
        lang = re.sub(r"^[^A-Za-z]+", "", str(lang))
        if lang:
            tags.append(lang.lower().replace("_", "-"))
    return tags


def voice_matches(voice, code: str) -> bool:
    """Whether a pyttsx3 voice speaks the given ISO 639-1 code."""
    code = code.lower()
    for tag in _voice_tags(voice):
        if tag == code or tag.startswith(code + "-"):
            return True
    tokens = re.split(r"[/\\.\-_ ]", str(getattr(voice, "id", "")).lower())
    return code in tokens


class Pyttsx3Playback(PlaybackHandle):
    def __init__(self, engine):
        self._engine = engine

    def wait(self, timeout: Optional[float] = None) -> None:
        if timeout is not None:
            logger.debug("pyttsx3 plays synchronously; playback timeout is not enforced")
        try:
            self._engine.runAndWait()
        except PYTTSX3_ERRORS as e:
            raise BackendError("wait", str(e)) from e


class Pyttsx3Session(SpeechSessionPort):
    def __init__(self, engine, driver: Optional[str] = None):
        self._engine = engine
        self._driver = driver
        self._state = SessionState.CONNECTED
        self._active_language: Optional[str] = None
        self._notifications = False

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
        logger.debug(f"pyttsx3 has no client identity; ignoring {app_name}:{client_name}:{component_name}")

    def set_output_module(self, name: str) -> None:
        self._require_open("set_output_module")
        driver = DRIVER_ALIASES.get(name, name)
        if driver not in KNOWN_DRIVERS:
            raise BackendError("set_output_module", f"unknown pyttsx3 driver {name!r}")
        if driver == self._driver:
            return
        previous = self._engine
        try:
            engine = pyttsx3.init(driverName=driver)
            if engine is not previous:
                previous.stop()
        except PYTTSX3_ERRORS as e:
            raise BackendError("set_output_module", f"driver {driver!r}: {e}") from e
        self._engine = engine
        self._driver = driver
        self._active_language = None
        logger.info(f"pyttsx3 driver: {driver}")

    def enable_event_notifications(self, enabled: bool) -> None:
        self._require_open("enable_event_notifications")
        self._notifications = enabled

    def set_language(self, code: str) -> None:
        self._require_open("set_language")
        try:
            voices = self._engine.getProperty("voices") or []
            voice = next((v for v in voices if voice_matches(v, code)), None)
            if voice is None:
                raise BackendError("set_language", f"no pyttsx3 voice for language {code!r}")
            self._engine.setProperty("voice", voice.id)
        except PYTTSX3_ERRORS as e:
            raise BackendError("set_language", f"language {code!r}: {e}") from e
        logger.debug(f"Using voice {voice.id} for {code}")
        self._active_language = code

    def speak(self, text: str) -> PlaybackHandle:
        self._require_open("speak")
        try:
            self._engine.say(text)
        except PYTTSX3_ERRORS as e:
            raise BackendError("speak", str(e)) from e
        return Pyttsx3Playback(self._engine)

    def close(self) -> None:
        if self._state is SessionState.CLOSED:
            return
        self._state = SessionState.CLOSED
        try:
            self._engine.stop()
        except PYTTSX3_ERRORS as e:
            raise BackendError("close", str(e)) from e
        logger.info("pyttsx3 session closed")


class Pyttsx3Backend(SpeechBackendPort):
    def __init__(self, driver: Optional[str] = None):
        self._driver = driver

    def open(self) -> SpeechSessionPort:
        try:
            engine = pyttsx3.init(driverName=self._driver)
        except PYTTSX3_ERRORS as e:
            raise BackendError("open", str(e)) from e
        return Pyttsx3Session(engine, self._driver)

    def name(self) -> str:
        return f"pyttsx3 ({self._driver or 'default driver'})"
