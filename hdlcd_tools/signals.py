"""
SIGINT/SIGTERM handling on the event loop.
"""

import asyncio
import logging
import signal
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

STOP_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class SignalSupervisor:
    """
    Converts interrupt/terminate signals into a single stop callback.

    Signals are dispatched on the event loop. Only the first delivery after
    async_wait() fires the callback; later ones are ignored until re-armed.
    cancel() removes the handlers again.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self.loop = loop
        self._callback: Optional[Callable[[], None]] = None
        self._installed: List[int] = []
        # Previous handlers, only used where the loop cannot watch signals
        self._previous: Dict[int, object] = {}

    @property
    def armed(self) -> bool:
        return self._callback is not None

    def async_wait(self, callback: Callable[[], None]) -> None:
        """
        Arm the supervisor.

        Args:
            callback: Invoked on the loop for the first signal received.
        """
        self._callback = callback
        if self._installed:
            return

        for signum in STOP_SIGNALS:
            try:
                self.loop.add_signal_handler(signum, self._deliver, signum)
            except NotImplementedError:
                # Loop without signal support (e.g. Windows proactor)
                self._previous[signum] = signal.signal(signum, self._threadsafe_deliver)
            self._installed.append(signum)

        logger.debug(f"Signal handlers installed for {[signal.Signals(s).name for s in self._installed]}")

    def cancel(self) -> None:
        """Disarm and remove the handlers; idempotent."""
        self._callback = None
        while self._installed:
            signum = self._installed.pop()
            if signum in self._previous:
                signal.signal(signum, self._previous.pop(signum))
            elif not self.loop.is_closed():
                self.loop.remove_signal_handler(signum)

    def _threadsafe_deliver(self, signum, frame) -> None:
        self.loop.call_soon_threadsafe(self._deliver, signum)

    def _deliver(self, signum: int) -> None:
        callback = self._callback
        if callback is None:
            logger.debug(f"Ignoring signal {signum}, supervisor not armed")
            return

        logger.info(f"Received signal {signal.Signals(signum).name}, stopping")
        self._callback = None
        callback()
