"""LinguaDetectorAdapter — span detection via lingua's multiple-language mode.

lingua reports each language run of a text as a DetectionResult carrying
character offsets and a lingua Language. Results are mapped to DetectedSpan
with domain Language tags; the pipeline orders them.
"""

import logging

from lingua import Language as LinguaLanguage
from lingua import LanguageDetectorBuilder

from polyglot_voice.domain.models import DetectedSpan, Language, LanguageCatalog, LanguageSet
from polyglot_voice.ports.language_detection import LanguageDetectionPort

logger = logging.getLogger(__name__)


def _to_language(lingua_language: LinguaLanguage) -> Language:
    return Language(
        name=lingua_language.name.title(),
        code=lingua_language.iso_code_639_1.name.lower(),
    )


def lingua_catalog() -> LanguageCatalog:
    """Every language lingua can detect, keyed by display name."""
    languages = (_to_language(lang) for lang in LinguaLanguage.all())
    return LanguageCatalog({lang.name: lang for lang in languages})


class LinguaDetectorAdapter(LanguageDetectionPort):
    def __init__(self, language_set: LanguageSet):
        by_name = {lang.name.upper(): lang for lang in LinguaLanguage.all()}
        selected = [by_name[lang.name.upper()] for lang in language_set]
        self._languages = {lingua_lang: _to_language(lingua_lang) for lingua_lang in selected}

        logger.info(f"Building lingua detector for: {', '.join(language_set.names())}")
        self._detector = LanguageDetectorBuilder.from_languages(*selected).build()

    def detect_spans(self, text: str) -> list[DetectedSpan]:
        spans = []
        for result in self._detector.detect_multiple_languages_of(text):
            language = self._languages.get(result.language) or _to_language(result.language)
            spans.append(DetectedSpan(
                start=result.start_index,
                end=result.end_index,
                language=language,
            ))
        return spans
