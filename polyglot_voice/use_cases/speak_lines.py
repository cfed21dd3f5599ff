"""SpeakLinesUseCase — orchestrates the scan -> detect -> segment -> speak loop.

Accepts the detector and the speech session via dependency injection.
Utterances are spoken strictly one at a time in document order: the next
language switch or speak call never starts before the previous playback
has finished.
"""

import logging
from typing import IO, Iterable, Iterator, Optional, Union

from polyglot_voice.domain.models import Language, SpeakSummary
from polyglot_voice.errors import InputReadError
from polyglot_voice.ports.language_detection import LanguageDetectionPort
from polyglot_voice.ports.speech import SpeechSessionPort
from polyglot_voice.segmenting import extract_utterances

logger = logging.getLogger(__name__)

PROMPT = "Enter text to detect language (CTRL+D to exit):"


class SpeakLinesUseCase:
    def __init__(
        self,
        detector: LanguageDetectionPort,
        session: SpeechSessionPort,
        playback_timeout: Optional[float] = None,
        encoding: str = "utf-8",
    ):
        self._detector = detector
        self._session = session
        self._playback_timeout = playback_timeout
        self._encoding = encoding

    def execute(self, stream: Union[IO, Iterable]) -> SpeakSummary:
        """Speak every line of stream until end of input.

        Raises InputReadError when reading fails and BackendError when any
        session call fails. Nothing is skipped or retried.
        """
        if not self._session.notifications_enabled:
            raise RuntimeError("event notifications must be enabled before speaking")

        summary = SpeakSummary()
        if _is_interactive(stream):
            print(PROMPT, flush=True)

        for line in self._read_lines(stream):
            summary.lines += 1
            # Blank lines never reach the detector
            if not line.strip():
                continue
            self._speak_line(line, summary)

        logger.info(
            f"End of input: {summary.lines} lines, {summary.utterances} utterances, "
            f"{summary.language_switches} language switches"
        )
        return summary

    def _read_lines(self, stream: Union[IO, Iterable]) -> Iterator[str]:
        lines = iter(stream)
        while True:
            try:
                line = next(lines)
                if isinstance(line, bytes):
                    line = line.decode(self._encoding)
            except StopIteration:
                return
            except (OSError, UnicodeDecodeError) as e:
                raise InputReadError(f"error reading input: {e}") from e
            yield line.rstrip("\r\n")

    def _speak_line(self, line: str, summary: SpeakSummary) -> None:
        spans = self._detector.detect_spans(line)
        for utterance in extract_utterances(line, spans):
            logger.debug(
                f"Detected language {utterance.language.code} for substring '{utterance.text}'"
            )
            if self._switch_language(utterance.language):
                summary.language_switches += 1

            handle = self._session.speak(utterance.text)
            handle.wait(self._playback_timeout)
            summary.utterances += 1

    def _switch_language(self, language: Language) -> bool:
        if self._session.active_language == language.code:
            return False
        logger.debug(f"Switching output language to {language.code} ({language.name})")
        self._session.set_language(language.code)
        return True


def _is_interactive(stream) -> bool:
    isatty = getattr(stream, "isatty", None)
    if isatty is None:
        return False
    try:
        return bool(isatty())
    except (OSError, ValueError):
        return False
