"""
Bounded wait for a topic message

Subscribes to an asynchronous message stream, waits for one expected payload
and resolves with exactly one outcome:

- Matched: the expected payload arrived
- TimedOut: nothing matching arrived within the timeout
- SubscriptionError: the stream reported an error, or registration failed

The subscription is released exactly once on every path. Stream callbacks may
run on foreign threads (SDK gRPC workers, mirror polling threads); they are
handed over to the waiting event loop, where a resolved flag drops anything
that arrives after the outcome is known.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from .config import TestConfig
from .errors import MessageTimeoutError


@dataclass(frozen=True)
class Matched:
    payload: str


@dataclass(frozen=True)
class TimedOut:
    expected: str
    timeout_ms: int


@dataclass(frozen=True)
class SubscriptionError:
    cause: BaseException


Outcome = Union[Matched, TimedOut, SubscriptionError]


class MessageMatcher:
    """
    Single-use waiter for one expected message

    Args:
        source: Object with subscribe(on_message, on_error) returning a
            handle with cancel()
        expected: Payload that counts as a match
        timeout_ms: Time to wait for the match in milliseconds
        debug: Print ignored payloads
    """

    def __init__(self, source: Any, expected: str, timeout_ms: int, debug: bool = False):
        if timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive, got {timeout_ms}")
        self.source = source
        self.expected = expected
        self.timeout_ms = timeout_ms
        self.debug = debug or TestConfig.DEBUG

        self.handle = None
        self.timer: Optional[asyncio.TimerHandle] = None
        self.resolved = False
        self.released = False

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._future: Optional[asyncio.Future] = None

    async def wait(self) -> Outcome:
        """Subscribe, arm the timer and wait for the outcome"""
        if self._future is not None:
            raise RuntimeError("MessageMatcher instances are single-use")

        self._loop = asyncio.get_running_loop()
        self._future = self._loop.create_future()

        # Listener goes in before the timer so nothing can slip past an unarmed wait
        try:
            self.handle = self.source.subscribe(self._on_message_threadsafe, self._on_error_threadsafe)
        except Exception as e:
            self.resolved = True
            return SubscriptionError(e)

        self.timer = self._loop.call_later(self.timeout_ms / 1000, self._on_timeout)

        try:
            return await self._future
        finally:
            # Only does work when the waiting task was cancelled
            self.resolved = True
            self.timer.cancel()
            self._release()

    def _on_message_threadsafe(self, payload: str) -> None:
        self._dispatch(self._on_message, payload)

    def _on_error_threadsafe(self, error: BaseException) -> None:
        self._dispatch(self._on_error, error)

    def _dispatch(self, callback: Callable[[Any], None], value: Any) -> None:
        if self.resolved:
            return
        try:
            self._loop.call_soon_threadsafe(callback, value)
        except RuntimeError:
            # Loop already closed: the outcome has been delivered
            return

    def _on_message(self, payload: str) -> None:
        if self.resolved:
            return
        if payload != self.expected:
            if self.debug:
                print(f"[Subscription] Ignoring message: {payload!r}")
            return
        self._resolve(Matched(payload))

    def _on_error(self, error: BaseException) -> None:
        if self.resolved:
            return
        self._resolve(SubscriptionError(error))

    def _on_timeout(self) -> None:
        if self.resolved:
            return
        self._resolve(TimedOut(self.expected, self.timeout_ms))

    def _resolve(self, outcome: Outcome) -> None:
        self.resolved = True
        if self.timer is not None:
            self.timer.cancel()
        # Outcome first: a failing cancel() must not leave wait() hanging
        if not self._future.done():
            self._future.set_result(outcome)
        self._release()

    def _release(self) -> None:
        if self.released or self.handle is None:
            return
        self.released = True
        self.handle.cancel()


async def await_matching_message(source: Any, expected: str, timeout_ms: Optional[int] = None) -> Outcome:
    """
    Wait until `expected` is delivered by `source`

    Args:
        source: Message source (see MessageMatcher)
        expected: Payload to wait for
        timeout_ms: Wait limit in milliseconds (default: from config)

    Returns:
        Matched, TimedOut or SubscriptionError
    """
    if timeout_ms is None:
        timeout_ms = TestConfig.MESSAGE_TIMEOUT
    matcher = MessageMatcher(source, expected, timeout_ms)
    return await matcher.wait()


def expect_message(outcome: Outcome) -> str:
    """Return the matched payload, raise for any other outcome"""
    if isinstance(outcome, Matched):
        return outcome.payload
    if isinstance(outcome, TimedOut):
        raise MessageTimeoutError(f'Timeout waiting for message: "{outcome.expected}"')
    raise outcome.cause
