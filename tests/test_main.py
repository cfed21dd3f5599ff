import io
import logging
import signal

import pytest

from polyglot_voice import main
from conftest import ENGLISH, FRENCH, FakeBackend, FakeDetector, FakeSession
from polyglot_voice.config import Config
from polyglot_voice.domain.models import DetectedSpan
from polyglot_voice.errors import BackendError


@pytest.fixture
def wiring(monkeypatch, catalog, no_sleep):
    """Replace adapter factories with fakes and record what startup touches."""
    state = {"backend": FakeBackend(session=FakeSession()), "detector": FakeDetector(), "backend_created": 0, "language_set": None}

    def create_detector(language_set):
        state["language_set"] = language_set
        return state["detector"]

    def create_speech_backend(backend, client_name="polyglot-voice"):
        state["backend_created"] += 1
        state["backend_name"] = backend
        return state["backend"]

    monkeypatch.setattr(main, "create_language_catalog", lambda: catalog)
    monkeypatch.setattr(main, "create_detector", create_detector)
    monkeypatch.setattr(main, "create_speech_backend", create_speech_backend)
    for name in ("VOICE_BACKEND", "OUTPUT_MODULE", "CLIENT_NAME", "CONNECT_RETRIES", "CONNECT_RETRY_DELAY", "PLAYBACK_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(main, "get_config", Config)
    return state


def test_list_languages_prints_catalog_and_skips_startup(wiring, capsys):
    code = main.main(["--list-languages"])

    assert code == 0
    assert capsys.readouterr().out.splitlines() == ["English", "French", "German"]
    assert wiring["backend_created"] == 0
    assert wiring["backend"].opens == 0


@pytest.mark.parametrize("argv", [
    [],
    ["--use-languages", ""],
    ["--use-languages", "English"],
    ["--use-languages", "English,english"],
    ["--use-languages", "English,Klingon"],
    ["--use-languages", "English,French", "--connect-retries", "0"],
    ["--use-languages", "English,French", "--playback-timeout", "0"],
])
def test_invalid_startup_fails_before_backend_contact(wiring, argv):
    code = main.main(argv, stdin=io.StringIO("Hello\n"))

    assert code == main.EXIT_CONFIG
    assert wiring["backend_created"] == 0
    assert wiring["backend"].opens == 0


def test_unknown_language_is_reported(wiring, caplog):
    main.main(["--use-languages", "English,Klingon"], stdin=io.StringIO(""))

    assert any("unknown language: Klingon" in r.getMessage() for r in caplog.records)


@pytest.mark.parametrize("argv", [
    ["--use-languages", "English,French"],
    ["--use-languages", "english", "--use-languages", " FRENCH "],
    ["--use-languages", "English,French,German"],
])
def test_valid_language_lists_start_up(wiring, argv):
    code = main.main(argv, stdin=io.StringIO(""))

    assert code == 0
    assert wiring["backend_created"] == 1
    assert ENGLISH in wiring["language_set"]
    assert FRENCH in wiring["language_set"]


def test_full_run_speaks_and_closes_session(wiring):
    wiring["detector"] = FakeDetector({"Bonjour world": [DetectedSpan(8, 13, ENGLISH), DetectedSpan(0, 7, FRENCH)]})

    code = main.main(
        ["--use-languages", "English,French", "--backend", "log", "--output-module", "espeak-ng"],
        stdin=io.StringIO("Bonjour world\n"),
    )

    session = wiring["backend"].session
    assert code == 0
    assert wiring["backend_name"] == "log"
    assert session.calls == [
        ("configure", "polyglot-voice", "polyglot-voice", "polyglot-voice"),
        ("set_output_module", "espeak-ng"),
        ("enable_event_notifications", True),
        ("set_language", "fr"),
        ("speak", "Bonjour"),
        ("wait", "Bonjour"),
        ("set_language", "en"),
        ("speak", "world"),
        ("wait", "world"),
    ]
    assert session.close_count == 1


def test_backend_failure_exits_nonzero_and_closes(wiring):
    wiring["backend"] = FakeBackend(session=FakeSession(fail={"speak": BackendError("speak", "broken pipe")}))

    code = main.main(["--use-languages", "English,French"], stdin=io.StringIO("Hello\n"))

    assert code == main.EXIT_FAILURE
    assert wiring["backend"].session.close_count == 1


def test_setup_failure_still_closes(wiring):
    wiring["backend"] = FakeBackend(session=FakeSession(fail={"set_output_module": BackendError("set_output_module", "no such module")}))

    code = main.main(["--use-languages", "English,French"], stdin=io.StringIO("Hello\n"))

    assert code == main.EXIT_FAILURE
    session = wiring["backend"].session
    assert session.close_count == 1
    assert not any(c[0] == "speak" for c in session.calls)


def test_read_failure_exits_nonzero_and_closes(wiring):
    def lines():
        raise OSError("stdin closed")
        yield  # pragma: no cover

    code = main.main(["--use-languages", "English,French"], stdin=lines())

    assert code == main.EXIT_FAILURE
    assert wiring["backend"].session.close_count == 1


def test_exhausted_connection_retries_exit_nonzero(wiring, no_sleep, caplog):
    wiring["backend"] = FakeBackend(failures=10)

    code = main.main(
        ["--use-languages", "English,French", "--connect-retries", "3", "--connect-delay", "0.5"],
        stdin=io.StringIO("Hello\n"),
    )

    assert code == main.EXIT_FAILURE
    assert wiring["backend"].opens == 3
    assert no_sleep == [0.5, 0.5]
    assert wiring["backend"].session.close_count == 0
    assert any("after 3 attempts" in r.getMessage() for r in caplog.records)


def test_pyttsx3_default_keeps_the_opened_driver(wiring):
    code = main.main(["--use-languages", "English,French", "--backend", "pyttsx3"], stdin=io.StringIO(""))

    session = wiring["backend"].session
    assert code == 0
    assert wiring["backend_name"] == "pyttsx3"
    assert not any(c[0] == "set_output_module" for c in session.calls)
    assert ("enable_event_notifications", True) in session.calls


def test_interrupt_during_connection_retries_exits_through_the_guard(wiring):
    class InterruptedBackend(FakeBackend):
        def open(self):
            self.opens += 1
            signal.raise_signal(signal.SIGINT)
            raise AssertionError("SIGINT handler did not fire")

    wiring["backend"] = InterruptedBackend()
    before = signal.getsignal(signal.SIGINT)

    with pytest.raises(SystemExit) as excinfo:
        main.main(["--use-languages", "English,French"], stdin=io.StringIO("Hello\n"))

    assert excinfo.value.code == 128 + signal.SIGINT
    assert wiring["backend"].opens == 1
    assert wiring["backend"].session.close_count == 0
    assert signal.getsignal(signal.SIGINT) is before


def test_keyboard_interrupt_during_startup_exits_quietly(wiring, monkeypatch, caplog):
    def interrupted(language_set):
        raise KeyboardInterrupt

    monkeypatch.setattr(main, "create_detector", interrupted)

    code = main.main(["--use-languages", "English,French"], stdin=io.StringIO("Hello\n"))

    assert code == main.EXIT_INTERRUPTED == 130
    assert wiring["backend_created"] == 0
    assert any("Interrupted during startup" in r.getMessage() for r in caplog.records)


def test_debug_setting_raises_root_log_level(wiring, monkeypatch):
    monkeypatch.setenv("DEBUG", "1")
    root = logging.getLogger()
    level = root.level
    root.setLevel(logging.WARNING)
    try:
        code = main.main(["--use-languages", "English,French", "--backend", "log"], stdin=io.StringIO(""))

        assert code == 0
        assert root.level == logging.DEBUG
    finally:
        root.setLevel(level)
