"""
Cooperative cancellation for batch uploads
"""

import logging
import signal
import threading
from contextlib import contextmanager

from assetmint.core.exceptions import CancellationObserved

logger = logging.getLogger(__name__)


class CancellationToken:
    """Thread-safe cancellation flag shared by a batch and its backend calls"""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, message: str = "Upload cancelled") -> None:
        if self._event.is_set():
            raise CancellationObserved(message)


@contextmanager
def interrupt_scope(token: CancellationToken):
    """
    Arm `token` on SIGINT for the duration of the block.

    The previous handler is restored on exit so repeated runs never stack
    handlers. Signal handlers can only be installed from the main thread;
    elsewhere the block runs without interrupt support.
    """

    def _on_interrupt(signum, frame):
        print("\nCancelling upload...")
        token.cancel()

    try:
        previous = signal.signal(signal.SIGINT, _on_interrupt)
    except ValueError:
        logger.warning("Not on the main thread, SIGINT will not cancel this run")
        yield token
        return

    try:
        yield token
    finally:
        signal.signal(signal.SIGINT, previous)
