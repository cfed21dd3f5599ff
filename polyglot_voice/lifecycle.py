"""Session lifecycle guard: exactly-once close on every exit path."""

import logging
import signal
import threading
from enum import Enum
from typing import Optional

from polyglot_voice.errors import BackendError
from polyglot_voice.ports.speech import SpeechSessionPort

logger = logging.getLogger(__name__)

TERMINATION_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class GuardState(Enum):
    ACTIVE = "active"
    CLOSING = "closing"
    CLOSED = "closed"


class SessionGuardian:
    """Owns the session's close across normal exit, errors and termination signals.

    Use as a context manager around everything that touches the session.
    Entering before the session exists arms the signal handlers for the
    connection phase too; adopt() then hands the new session over:

        with SessionGuardian() as guardian:
            session = guardian.adopt(open_session(...))
            ...

    Whichever trigger reaches release() first closes the session; every
    later trigger is a no-op. A termination signal closes the session and
    ends the process with SystemExit(128 + signum), without draining the
    playback in flight.
    """

    def __init__(self, session: Optional[SpeechSessionPort] = None, signals: tuple = TERMINATION_SIGNALS):
        self._session = session
        self._signals = tuple(signals)
        self._previous_handlers: dict = {}
        # Reentrant: the signal handler runs on the main thread and may
        # interrupt the main path while it holds the lock.
        self._lock = threading.RLock()
        self._state = GuardState.ACTIVE
        self.closed_by: Optional[str] = None

    @property
    def state(self) -> GuardState:
        return self._state

    def __enter__(self) -> "SessionGuardian":
        self._arm_signals()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            self.release("error" if exc_type is not None else "exit")
        finally:
            self._disarm_signals()
        return False

    def adopt(self, session: SpeechSessionPort) -> SpeechSessionPort:
        """Take ownership of a session opened inside the guarded scope.

        If the guard was already released, the session is closed right away
        and BackendError is raised so the caller does not go on using it.
        """
        with self._lock:
            if self._state is GuardState.ACTIVE:
                self._session = session
                return session
            closed_by = self.closed_by

        logger.debug(f"Guard already released (by {closed_by}); closing late session")
        try:
            session.close()
        except Exception as e:
            logger.error(f"Error closing speech session: {e}")
        raise BackendError("adopt", f"session guard already released by {closed_by}")

    def release(self, trigger: str) -> bool:
        """Close the session if nobody has yet. Returns True if this call closed it."""
        with self._lock:
            if self._state is not GuardState.ACTIVE:
                logger.debug(f"Session already {self._state.value} (by {self.closed_by}); ignoring {trigger}")
                return False
            self.closed_by = trigger
            if self._session is None:
                self._state = GuardState.CLOSED
                logger.debug(f"No session to close ({trigger})")
                return False
            self._state = GuardState.CLOSING

        logger.debug(f"Closing speech session ({trigger})")
        try:
            self._session.close()
        except Exception as e:
            logger.error(f"Error closing speech session: {e}")
        finally:
            with self._lock:
                self._state = GuardState.CLOSED
        return True

    def _handle_signal(self, signum, frame) -> None:
        name = signal.Signals(signum).name
        logger.warning(f"Received {name}, closing speech session")
        self.release("signal")
        raise SystemExit(128 + signum)

    def _arm_signals(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            logger.warning("Signal handlers can only be installed from the main thread; guarding scoped exit only")
            return
        for sig in self._signals:
            self._previous_handlers[sig] = signal.signal(sig, self._handle_signal)

    def _disarm_signals(self) -> None:
        for sig, previous in self._previous_handlers.items():
            signal.signal(sig, previous if previous is not None else signal.SIG_DFL)
        self._previous_handlers.clear()
