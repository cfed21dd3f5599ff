import sys
import signal
import logging
import argparse

from polyglot_voice.config import (
    BACKENDS,
    create_detector,
    create_language_catalog,
    create_speech_backend,
    get_config,
)
from polyglot_voice.errors import ConfigError, VoiceError
from polyglot_voice.lifecycle import SessionGuardian
from polyglot_voice.mappers import build_language_selection, build_session_settings, selection_to_language_set
from polyglot_voice.models import SessionSettings
from polyglot_voice.use_cases.open_session import open_session
from polyglot_voice.use_cases.speak_lines import SpeakLinesUseCase

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2
EXIT_INTERRUPTED = 128 + signal.SIGINT


def configure_logging(debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="polyglot-voice",
        description="Read text from stdin and speak each part in the language it is written in.",
    )
    parser.add_argument(
        "--use-languages",
        action="append",
        metavar="NAMES",
        help="Languages used for detection, comma-separated (i.e. English,Spanish,French). May be repeated.",
    )
    parser.add_argument(
        "--list-languages",
        action="store_true",
        help="Print out supported languages and exit",
    )
    parser.add_argument("--backend", choices=BACKENDS, default=None, help="Speech backend (default: $VOICE_BACKEND or speechd)")
    parser.add_argument("--output-module", default=None, help="Speech output module (default: $OUTPUT_MODULE, espeak-ng for speechd)")
    parser.add_argument("--connect-retries", type=int, default=None, help="Connection attempts (default: $CONNECT_RETRIES or 5)")
    parser.add_argument("--connect-delay", type=float, default=None, help="Seconds between connection attempts (default: 1.0)")
    parser.add_argument("--playback-timeout", type=float, default=None, help="Max seconds to wait for one utterance (default: unbounded)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def prepare_session(session, settings: SessionSettings) -> None:
    """Client identity, output module and event notifications, in that order."""
    session.configure(settings.client_name, settings.client_name, settings.client_name)
    if settings.output_module:
        session.set_output_module(settings.output_module)
    else:
        logger.debug("No output module configured; keeping the backend default")
    # Completion waits need event notifications
    session.enable_event_notifications(True)


def run(detector, backend, settings: SessionSettings, stream) -> int:
    # Armed before connecting: an interrupt during the retry loop exits through the guard
    with SessionGuardian() as guardian:
        session = guardian.adopt(open_session(backend, settings.connect_retries, settings.connect_delay))
        prepare_session(session, settings)
        SpeakLinesUseCase(detector, session, settings.playback_timeout).execute(stream)
    return EXIT_OK


def main(argv=None, stdin=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        catalog = create_language_catalog()
        if args.list_languages:
            for name in catalog.names():
                print(name)
            return EXIT_OK

        cfg = get_config()
        if cfg.debug:
            logging.getLogger().setLevel(logging.DEBUG)
        logger.debug(f"Config: {cfg.as_dict()}")
        settings = build_session_settings(cfg, args)
        language_set = selection_to_language_set(build_language_selection(args.use_languages), catalog)
        logger.debug(f"Trying to detect the following languages: {', '.join(language_set.names())}")

        detector = create_detector(language_set)
        backend = create_speech_backend(settings.backend, settings.client_name)
        return run(detector, backend, settings, stdin if stdin is not None else sys.stdin)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG
    except VoiceError as e:
        logger.error(f"Fatal: {e}")
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.warning("Interrupted during startup")
        return EXIT_INTERRUPTED


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
