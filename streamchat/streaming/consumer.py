import asyncio
import logging
from typing import AsyncIterator, List, Optional, Protocol, Sequence

from streamchat.exceptions import StreamCancelled, TransportError
from streamchat.models import ChatTurn, StreamResult, StreamUpdate, UsageStats
from streamchat.streaming.cancellation import CancellationSignal

logger = logging.getLogger(__name__)


class CompletionStream(Protocol):
    def stream_completion(
        self, turns: Sequence[ChatTurn], signal: CancellationSignal
    ) -> AsyncIterator[StreamUpdate]: ...


class FragmentSink(Protocol):
    def write_fragment(self, text: str) -> None: ...


class StreamAccumulator:
    """Concatenates the fragments of one reply in arrival order."""

    def __init__(self):
        self._parts: List[str] = []

    def append(self, fragment: str) -> None:
        self._parts.append(fragment)

    @property
    def text(self) -> str:
        return "".join(self._parts)


class StreamConsumer:
    """
    Drives one streamed completion to the end, echoing each fragment as it arrives.

    Every read from the transport is raced against the cancellation signal so a
    stalled network read cannot keep the session from stopping.
    """

    def __init__(self, transport: CompletionStream, sink: FragmentSink):
        self.transport = transport
        self.sink = sink

    async def consume(self, turns: Sequence[ChatTurn], signal: CancellationSignal) -> StreamResult:
        """
        Streams a reply for `turns`.

        Returns:
            The full reply text and the last usage statistics seen, if any.

        Raises:
            StreamCancelled: The signal fired before or during the stream.
            TransportError: The transport failed for any other reason.
        """
        if signal.is_triggered:
            raise StreamCancelled("Cancelled before the request was sent.")

        accumulator = StreamAccumulator()
        usage: Optional[UsageStats] = None

        try:
            updates = self.transport.stream_completion(turns, signal).__aiter__()
        except Exception as e:
            raise TransportError(str(e)) from e

        cancel_waiter = asyncio.ensure_future(signal.wait())
        try:
            while True:
                next_update = asyncio.ensure_future(updates.__anext__())
                done, _ = await asyncio.wait(
                    {next_update, cancel_waiter}, return_when=asyncio.FIRST_COMPLETED
                )

                if cancel_waiter in done:
                    next_update.cancel()
                    await asyncio.gather(next_update, return_exceptions=True)
                    logger.info(f"Stream cancelled after {len(accumulator.text)} characters.")
                    raise StreamCancelled("Operation cancelled.")

                try:
                    update = next_update.result()
                except StopAsyncIteration:
                    break
                except (TransportError, StreamCancelled):
                    raise
                except Exception as e:
                    logger.error(f"Streaming failed: {e}", exc_info=True)
                    raise TransportError(str(e)) from e

                if update.fragment:
                    accumulator.append(update.fragment)
                    self.sink.write_fragment(update.fragment)

                if update.usage is not None:
                    usage = update.usage
        finally:
            cancel_waiter.cancel()
            await asyncio.gather(cancel_waiter, return_exceptions=True)
            await self._close(updates)

        return StreamResult(text=accumulator.text, usage=usage)

    @staticmethod
    async def _close(updates: AsyncIterator[StreamUpdate]) -> None:
        aclose = getattr(updates, "aclose", None)
        if aclose is None:
            return
        try:
            await aclose()
        except Exception:
            logger.warning("Could not close the completion stream cleanly.", exc_info=True)
