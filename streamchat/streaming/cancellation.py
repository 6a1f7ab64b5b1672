import asyncio
import contextlib
import logging
import signal
from typing import Iterator, Optional

logger = logging.getLogger(__name__)


class CancellationSignal:
    """
    A one-way, process-wide flag asking the chat session to stop.

    It starts armed and can only move to triggered. Triggering never kills the
    process: the orchestrator checks it between turns and the stream consumer
    waits on it alongside every read from the transport.
    """

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def is_triggered(self) -> bool:
        return self._event.is_set()

    def trigger(self) -> bool:
        """Fires the signal. Returns False if it had already fired."""
        if self._event.is_set():
            return False
        logger.info("Cancellation requested.")
        self._event.set()
        return True

    async def wait(self) -> None:
        await self._event.wait()

    @contextlib.contextmanager
    def watch_interrupts(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> Iterator[bool]:
        """
        Routes SIGINT (Ctrl+C) to `trigger()` for the duration of the block.

        Yields whether the handler could be installed; event loops without
        signal handler support (Windows) leave SIGINT untouched.
        """
        loop = loop or asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, self.trigger)
        except (NotImplementedError, RuntimeError):
            logger.debug("Signal handlers are not supported by this event loop.")
            yield False
            return

        try:
            yield True
        finally:
            loop.remove_signal_handler(signal.SIGINT)
