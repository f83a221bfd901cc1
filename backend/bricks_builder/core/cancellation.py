"""
Cooperative cancellation for agent runs

A CancellationToken is created per run and handed to anything that starts
external work (subprocesses, HTTP calls). When the run is abandoned the token
fires its callbacks so that work is stopped instead of left running.
"""
import threading
from typing import Callable, List, Optional

from bricks_builder.core.logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)


class OperationCancelled(Exception):
    """Raised when work is started on an already-cancelled token"""
    pass


class CancellationToken:
    """
    One-shot cancellation signal

    Example:
        >>> token = CancellationToken()
        >>> unregister = token.register(lambda: proc.kill())
        >>> token.cancel("timeout")  # proc.kill() runs now
    """

    def __init__(self):
        self._cancelled = False
        self._reason: Optional[str] = None
        self._callbacks: List[Callable[[], None]] = []
        self._lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: Optional[str] = None) -> None:
        """Cancel the token and run registered callbacks once"""
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            self._reason = reason
            callbacks = list(self._callbacks)
            self._callbacks.clear()

        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.warning(f"Cancellation callback failed: {e}", exc_info=True)

    def register(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Register a callback to run on cancellation

        If the token is already cancelled the callback runs immediately.

        Returns:
            Function that unregisters the callback
        """
        with self._lock:
            if not self._cancelled:
                self._callbacks.append(callback)
                registered = True
            else:
                registered = False

        if not registered:
            callback()
            return lambda: None

        def unregister() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return unregister

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise OperationCancelled(self._reason or "Operation cancelled")

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self._cancelled}, reason={self._reason!r})"
