"""Segmentation helpers for detected language spans.

Functions for ordering spans, clamping them to the line, and turning
them into trimmed utterances in document order.
"""

import logging
from typing import Iterable, List

from polyglot_voice.domain.models import DetectedSpan, Utterance

logger = logging.getLogger(__name__)


def order_spans(spans: Iterable[DetectedSpan]) -> List[DetectedSpan]:
    """Sort spans left-to-right by start offset (ties broken by end).

    Detectors may return spans in their own internal order; speech must
    follow the order of the text.
    """
    return sorted(spans, key=lambda s: (s.start, s.end))


def clamp_span(span: DetectedSpan, length: int) -> DetectedSpan:
    """Clamp a span's offsets into [0, length]."""
    start = min(span.start, length)
    end = min(span.end, length)
    if (start, end) == (span.start, span.end):
        return span
    logger.debug(f"Clamped span [{span.start}, {span.end}) to [{start}, {end}) for line of length {length}")
    return DetectedSpan(start=start, end=end, language=span.language)


def extract_utterances(line: str, spans: Iterable[DetectedSpan]) -> List[Utterance]:
    """Turn detected spans of a line into utterances in document order.

    Args:
        line: The input line the spans index into.
        spans: Spans returned by the detector, in any order.

    Returns:
        Utterances with whitespace trimmed. Spans covering only
        whitespace are dropped.
    """
    utterances = []
    for span in order_spans(spans):
        span = clamp_span(span, len(line))
        text = line[span.start:span.end].strip()
        if not text:
            continue
        utterances.append(Utterance(
            text=text,
            language=span.language,
            start=span.start,
            end=span.end,
        ))
    return utterances
