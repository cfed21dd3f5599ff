"""CLI DTO -> domain mappers.

Converts validated LanguageSelection / SessionSettings models into the
domain values startup hands to the pipeline. Every failure surfaces as
ConfigError, before any backend is contacted.
"""

from typing import Iterable, Optional

from pydantic import ValidationError

from polyglot_voice.config import DEFAULT_OUTPUT_MODULES, Config
from polyglot_voice.domain.models import LanguageCatalog, LanguageSet
from polyglot_voice.errors import ConfigError
from polyglot_voice.models import LanguageSelection, SessionSettings


def _describe(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        field = ".".join(str(loc) for loc in err["loc"])
        parts.append(f"{field}: {err['msg']}")
    return "; ".join(parts)


def build_language_selection(raw: Optional[Iterable[str]]) -> LanguageSelection:
    """Validate raw --use-languages values."""
    try:
        return LanguageSelection(names=list(raw or []))
    except ValidationError:
        raise ConfigError("must specify at least one language with --use-languages") from None


def selection_to_language_set(selection: LanguageSelection, catalog: LanguageCatalog) -> LanguageSet:
    """Resolve names through the catalog. Unknown names and fewer than two languages are rejected."""
    languages = []
    for name in selection.names:
        language = catalog.resolve(name)
        if language is None:
            raise ConfigError(f"unknown language: {name} (see --list-languages)")
        languages.append(language)
    try:
        return LanguageSet(frozenset(languages))
    except ValueError as e:
        raise ConfigError(str(e)) from None


def build_session_settings(cfg: Config, args) -> SessionSettings:
    """Merge CLI overrides on top of environment configuration."""
    def pick(name: str, default):
        value = getattr(args, name, None)
        return default if value is None else value

    backend = pick("backend", cfg.backend)
    output_module = pick("output_module", cfg.output_module) or DEFAULT_OUTPUT_MODULES.get(backend)
    try:
        return SessionSettings(
            backend=backend,
            output_module=output_module,
            client_name=cfg.client_name,
            connect_retries=pick("connect_retries", cfg.connect_retries),
            connect_delay=pick("connect_delay", cfg.connect_retry_delay),
            playback_timeout=pick("playback_timeout", cfg.playback_timeout),
        )
    except ValidationError as e:
        raise ConfigError(f"invalid settings: {_describe(e)}") from None
