"""Open a speech session with bounded, fixed-delay retries.

Speech backends (Speech Dispatcher in particular) can refuse a connection
right after startup and accept the next one. This is the only retry loop
in the program; a backend that stays down is reported after max_attempts.
"""

import logging
import time
from typing import Optional

from polyglot_voice.errors import BackendError, SpeechConnectionError
from polyglot_voice.ports.speech import SpeechBackendPort, SpeechSessionPort

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_DELAY = 1.0


def open_session(
    backend: SpeechBackendPort,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    delay: float = DEFAULT_DELAY,
) -> SpeechSessionPort:
    """Open a session, retrying up to max_attempts times with delay seconds between tries.

    Raises SpeechConnectionError carrying the attempt count and the last
    backend error when every attempt fails.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
    if delay < 0:
        raise ValueError(f"delay must not be negative, got {delay}")

    last_error: Optional[BackendError] = None
    for attempt in range(1, max_attempts + 1):
        try:
            session = backend.open()
        except BackendError as e:
            last_error = e
            logger.warning(
                f"Failed to connect to {backend.name()} (attempt {attempt}/{max_attempts}): {e}"
            )
            if attempt < max_attempts:
                time.sleep(delay)
            continue

        logger.info(f"Connected to {backend.name()} (attempt {attempt}/{max_attempts})")
        return session

    raise SpeechConnectionError(attempts=max_attempts, last_error=last_error) from last_error
