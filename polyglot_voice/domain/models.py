"""Framework-agnostic domain models for polyglot-voice.

Adapters translate their library types (lingua languages, detection results)
into these values at the boundary, so the pipeline never touches them directly.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Iterator, Mapping, Optional


@dataclass(frozen=True)
class Language:
    """A resolved language tag: display name plus ISO 639-1 code."""
    name: str
    code: str


@dataclass(frozen=True)
class LanguageSet:
    """The languages a detector may choose among for one run."""
    languages: frozenset[Language]

    def __post_init__(self):
        if len(self.languages) < 2:
            raise ValueError(
                f"at least two languages must be specified, got {len(self.languages)}"
            )

    def __iter__(self) -> Iterator[Language]:
        return iter(sorted(self.languages, key=lambda lang: lang.name))

    def __len__(self) -> int:
        return len(self.languages)

    def __contains__(self, language: object) -> bool:
        return language in self.languages

    def names(self) -> list[str]:
        return [lang.name for lang in self]


@dataclass(frozen=True)
class LanguageCatalog:
    """Immutable name -> Language lookup built once at startup."""
    entries: Mapping[str, Language] = field(default_factory=dict)

    def __post_init__(self):
        # Keys are folded so lookups ignore case.
        folded = {name.strip().casefold(): lang for name, lang in self.entries.items()}
        object.__setattr__(self, "entries", MappingProxyType(folded))

    def resolve(self, name: str) -> Optional[Language]:
        return self.entries.get(name.strip().casefold())

    def names(self) -> list[str]:
        return sorted(lang.name for lang in self.entries.values())

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class DetectedSpan:
    """Half-open character range [start, end) of one line in one language."""
    start: int
    end: int
    language: Language

    def __post_init__(self):
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"invalid span [{self.start}, {self.end})")


@dataclass(frozen=True)
class Utterance:
    """Trimmed text of a span, ready to be spoken."""
    text: str
    language: Language
    start: int
    end: int


@dataclass
class SpeakSummary:
    """Counters reported when the pipeline reaches end of input."""
    lines: int = 0
    utterances: int = 0
    language_switches: int = 0


class SessionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    CLOSED = "closed"
