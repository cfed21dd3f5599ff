import pathlib
import sys
from typing import Optional

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from polyglot_voice.domain.models import DetectedSpan, Language, LanguageCatalog, SessionState  # noqa: E402
from polyglot_voice.errors import BackendError  # noqa: E402
from polyglot_voice.ports.language_detection import LanguageDetectionPort  # noqa: E402
from polyglot_voice.ports.speech import PlaybackHandle, SpeechBackendPort, SpeechSessionPort  # noqa: E402

ENGLISH = Language(name="English", code="en")
FRENCH = Language(name="French", code="fr")
GERMAN = Language(name="German", code="de")

class FakePlayback(PlaybackHandle):
    def __init__(self, session: "FakeSession", text: str):
        self._session = session
        self._text = text

    def wait(self, timeout: Optional[float] = None) -> None:
        self._session.calls.append(("wait", self._text))
        self._session.wait_timeouts.append(timeout)
        self._session.in_flight -= 1

class FakeSession(SpeechSessionPort):
    """Records every call in order; fail maps an operation name to the error it raises."""

    def __init__(self, fail: Optional[dict] = None, notifications: bool = False):
        self.calls: list = []
        self.fail = fail or {}
        self.close_count = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.wait_timeouts: list = []
        self._state = SessionState.CONNECTED
        self._active_language: Optional[str] = None
        self._notifications = notifications

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def active_language(self) -> Optional[str]:
        return self._active_language

    @property
    def notifications_enabled(self) -> bool:
        return self._notifications

    def _call(self, operation: str, *args) -> None:
        self.calls.append((operation, *args))
        if operation in self.fail:
            raise self.fail[operation]

    def configure(self, client_name: str, component_name: str, app_name: str) -> None:
        self._call("configure", client_name, component_name, app_name)

    def set_output_module(self, name: str) -> None:
        self._call("set_output_module", name)

    def enable_event_notifications(self, enabled: bool) -> None:
        self._call("enable_event_notifications", enabled)
        self._notifications = enabled

    def set_language(self, code: str) -> None:
        self._call("set_language", code)
        self._active_language = code

    def speak(self, text: str) -> PlaybackHandle:
        self._call("speak", text)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        return FakePlayback(self, text)

    def close(self) -> None:
        self.close_count += 1
        self._state = SessionState.CLOSED

class FakeBackend(SpeechBackendPort):
    """Fails the first `failures` opens, then hands out sessions."""

    def __init__(self, failures: int = 0, session: Optional[FakeSession] = None):
        self.failures = failures
        self.opens = 0
        self.session = session or FakeSession()

    def open(self) -> SpeechSessionPort:
        self.opens += 1
        if self.opens <= self.failures:
            raise BackendError("open", f"connection refused #{self.opens}")
        return self.session

    def name(self) -> str:
        return "fake"

class FakeDetector(LanguageDetectionPort):
    def __init__(self, spans_by_line: Optional[dict] = None, default_language: Language = ENGLISH):
        self.spans_by_line = spans_by_line or {}
        self.default_language = default_language
        self.lines: list = []

    def detect_spans(self, text: str) -> list:
        self.lines.append(text)
        if text in self.spans_by_line:
            return list(self.spans_by_line[text])
        return [DetectedSpan(0, len(text), self.default_language)]

@pytest.fixture
def catalog() -> LanguageCatalog:
    return LanguageCatalog({lang.name: lang for lang in (ENGLISH, FRENCH, GERMAN)})

@pytest.fixture
def session() -> FakeSession:
    return FakeSession(notifications=True)

@pytest.fixture
def no_sleep(monkeypatch):
    """Replace time.sleep with a recorder."""
    import time

    sleeps: list = []
    monkeypatch.setattr(time, "sleep", lambda seconds: sleeps.append(seconds))
    return sleeps
