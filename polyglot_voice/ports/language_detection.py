"""LanguageDetectionPort — abstract interface for multi-language detectors."""

from abc import ABC, abstractmethod

from polyglot_voice.domain.models import DetectedSpan


class LanguageDetectionPort(ABC):
    @abstractmethod
    def detect_spans(self, text: str) -> list[DetectedSpan]:
        """Split text into language-tagged spans. Order is not guaranteed."""
