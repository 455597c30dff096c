"""
Ordered registry of shutdown callbacks.
"""

import logging
from collections import deque
from typing import Callable, Deque

logger = logging.getLogger(__name__)


class SystemStopper:
    """
    FIFO of nullary shutdown callbacks, drained exactly once.

    stop() removes each callback before invoking it, so a callback may call
    stop() again (e.g. closing the session fires on_closed, which stops the
    registry) and every callback still runs exactly once. Leaving the
    context manager drains whatever is left.
    """

    def __init__(self) -> None:
        self._callbacks: Deque[Callable[[], None]] = deque()

    def register(self, callback: Callable[[], None]) -> None:
        """Append a shutdown callback."""
        self._callbacks.append(callback)

    def stop(self) -> None:
        """Invoke and remove registered callbacks in registration order."""
        while self._callbacks:
            callback = self._callbacks.popleft()
            try:
                callback()
            except Exception:
                logger.exception(f"Stopper callback {callback!r} failed")

    def __len__(self) -> int:
        return len(self._callbacks)

    def __enter__(self) -> "SystemStopper":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.stop()
