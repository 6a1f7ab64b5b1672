import asyncio
from typing import List, Optional, Sequence

from streamchat.models import ChatTurn, StreamUpdate, UsageStats


class FakeTransport:
    """Replays scripted updates for every request and records what it was sent."""

    def __init__(self, replies=None, error: Optional[Exception] = None, block_after: Optional[int] = None):
        self.replies = list(replies or [])
        self.error = error
        self.block_after = block_after
        self.requests: List[Sequence[ChatTurn]] = []
        self.closed = False

    async def stream_completion(self, turns, signal):
        self.requests.append(tuple(turns))
        updates = self.replies.pop(0) if self.replies else []
        try:
            for index, update in enumerate(updates):
                if self.block_after is not None and index >= self.block_after:
                    await asyncio.Event().wait()
                yield update
            if self.error is not None:
                raise self.error
            if self.block_after is not None:
                await asyncio.Event().wait()
        finally:
            self.closed = True


class RecordingSink:
    def __init__(self, on_fragment=None):
        self.fragments: List[str] = []
        self.errors: List[str] = []
        self.usages: List[Optional[UsageStats]] = []
        self.ai_headers = 0
        self.on_fragment = on_fragment

    def write_ai_header(self) -> None:
        self.ai_headers += 1

    def write_fragment(self, text: str) -> None:
        self.fragments.append(text)
        if self.on_fragment is not None:
            self.on_fragment(text)

    def display_error(self, message: str) -> None:
        self.errors.append(message)

    def display_usage(self, usage: Optional[UsageStats]) -> None:
        self.usages.append(usage)


class ScriptedReader:
    """Returns the scripted lines in order, then the given terminal action."""

    def __init__(self, lines, then=EOFError):
        self.lines = list(lines)
        self.then = then
        self.calls = 0

    def read_message(self) -> str:
        self.calls += 1
        if self.lines:
            line = self.lines.pop(0)
            if isinstance(line, BaseException) or (isinstance(line, type) and issubclass(line, BaseException)):
                raise line
            return line
        if isinstance(self.then, str):
            return self.then
        raise self.then


def fragments(*texts: str, usage: Optional[UsageStats] = None) -> List[StreamUpdate]:
    updates = [StreamUpdate(fragment=t) for t in texts]
    if usage is not None:
        updates.append(StreamUpdate(usage=usage))
    return updates


class StubConsole(RecordingSink):
    """Answers the set-up prompts with fixed values, then reads scripted chat messages."""

    def __init__(self, secret="ghp_token", model="openai/gpt-4.1-mini", messages=(), then=EOFError):
        super().__init__()
        self.secret = secret
        self.model = model
        self.reader = ScriptedReader(messages, then=then)
        self.headers = 0

    @staticmethod
    def _answer(value):
        if isinstance(value, type) and issubclass(value, BaseException):
            raise value
        return value

    def show_header(self) -> None:
        self.headers += 1

    def get_secret(self, prompt: str) -> str:
        return self._answer(self.secret)

    def get_string(self, prompt: str, should_clear: bool = True, **kwargs) -> str:
        return self._answer(self.model)

    def read_message(self) -> str:
        return self.reader.read_message()
