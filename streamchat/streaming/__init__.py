from .cancellation import CancellationSignal
from .consumer import StreamAccumulator, StreamConsumer

__all__ = ["CancellationSignal", "StreamAccumulator", "StreamConsumer"]
