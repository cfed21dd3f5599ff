"""Speech Dispatcher adapter (SSIP client from the speechd bindings)."""

from .session import SpeechdBackend, SpeechdSession

__all__ = ["SpeechdBackend", "SpeechdSession"]
