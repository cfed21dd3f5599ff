import os
import logging
from typing import Dict, Optional, Any

from dotenv import load_dotenv

from polyglot_voice.domain.models import LanguageCatalog, LanguageSet
from polyglot_voice.errors import ConfigError

logger = logging.getLogger(__name__)

load_dotenv()

DEFAULT_BACKEND = "speechd"
# Only Speech Dispatcher gets a default module; other backends keep the
# driver they open with unless one is named.
DEFAULT_OUTPUT_MODULES = {"speechd": "espeak-ng"}
DEFAULT_CLIENT_NAME = "polyglot-voice"
DEFAULT_CONNECT_RETRIES = 5
DEFAULT_CONNECT_RETRY_DELAY = 1.0
BACKENDS = ("speechd", "pyttsx3", "log")


def _env_number(name: str, default, cast):
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


class Config:
    def __init__(self):
        self._initialize()

    def _initialize(self):
        self.backend = os.environ.get("VOICE_BACKEND", DEFAULT_BACKEND).strip().lower()
        self.output_module = os.environ.get("OUTPUT_MODULE", "").strip() or None
        self.client_name = os.environ.get("CLIENT_NAME", DEFAULT_CLIENT_NAME).strip()
        self.connect_retries = _env_number("CONNECT_RETRIES", DEFAULT_CONNECT_RETRIES, int)
        self.connect_retry_delay = _env_number("CONNECT_RETRY_DELAY", DEFAULT_CONNECT_RETRY_DELAY, float)
        self.playback_timeout = _env_number("PLAYBACK_TIMEOUT", None, float)
        self.debug = os.environ.get("DEBUG", "0") == "1"

    def as_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "output_module": self.output_module,
            "client_name": self.client_name,
            "connect_retries": self.connect_retries,
            "connect_retry_delay": self.connect_retry_delay,
            "playback_timeout": self.playback_timeout,
            "debug": self.debug,
        }


_config: Optional[Config] = None


def get_config() -> Config:
    global _config
    if _config is None:
        _config = Config()
    return _config


def create_language_catalog() -> LanguageCatalog:
    """Build the name -> language lookup from the detection engine."""
    from polyglot_voice.adapters.lingua import lingua_catalog
    catalog = lingua_catalog()
    logger.debug(f"Language catalog: {len(catalog)} languages")
    return catalog


def create_detector(language_set: LanguageSet):
    from polyglot_voice.adapters.lingua import LinguaDetectorAdapter
    return LinguaDetectorAdapter(language_set)


def create_speech_backend(backend: str, client_name: str = DEFAULT_CLIENT_NAME):
    """Create the speech backend adapter named by VOICE_BACKEND / --backend.

    Uses lazy imports so unused speech frameworks are never loaded.
    """
    if backend == "speechd":
        from polyglot_voice.adapters.speechd import SpeechdBackend
        adapter = SpeechdBackend(client_name, client_name, client_name)
    elif backend == "pyttsx3":
        from polyglot_voice.adapters.pyttsx3.session import Pyttsx3Backend
        adapter = Pyttsx3Backend()
    elif backend == "log":
        from polyglot_voice.adapters.local.log_speech import LogSpeechBackend
        adapter = LogSpeechBackend()
    else:
        raise ConfigError(f"Unknown backend: {backend!r}. Valid options: {', '.join(BACKENDS)}")

    logger.info(f"Speech backend: {backend} -> {type(adapter).__name__}")
    return adapter
