"""
Multi-consumer message broadcast.

Every subscription receives every message sent after it subscribed, in send
order, through its own bounded buffer. ``send`` never waits for slow
subscribers: when a subscription's buffer is full its oldest message is
dropped and counted, and the next ``recv`` raises :class:`Lagged` with the
number of dropped messages before delivery resumes with the oldest message
still buffered. One lagging subscriber never affects the others.

After ``close()``, subscribers receive what is still buffered and then
:class:`ChannelClosed`.
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Deque, Generic, Set, TypeVar

from caretaker.errors import CaretakerError, ChannelClosed

T = TypeVar("T")


class Lagged(CaretakerError):
    """The subscriber fell behind and ``skipped`` messages were dropped for it."""

    def __init__(self, skipped: int) -> None:
        super().__init__(f"Subscriber lagged behind, {skipped} messages skipped")
        self.skipped = skipped


class Subscription(Generic[T]):
    """Receiving end of a :class:`MessageBroadcast`."""

    def __init__(self, broadcast: "MessageBroadcast[T]", capacity: int) -> None:
        self._broadcast = broadcast
        self._capacity = capacity
        self._buffer: Deque[T] = deque()
        self._skipped = 0
        self._closed = False
        self._ready = asyncio.Event()

    def _push(self, item: T) -> None:
        if len(self._buffer) >= self._capacity:
            self._buffer.popleft()
            self._skipped += 1
        self._buffer.append(item)
        self._ready.set()

    def _close(self) -> None:
        self._closed = True
        self._ready.set()

    def __len__(self) -> int:
        return len(self._buffer)

    async def recv(self) -> T:
        """
        Wait for the next message.

        Raises:
            Lagged: Messages were dropped since the last ``recv``.
            ChannelClosed: The broadcast is closed and the buffer is empty.
        """
        while True:
            if self._skipped:
                skipped, self._skipped = self._skipped, 0
                raise Lagged(skipped)
            if self._buffer:
                return self._buffer.popleft()
            if self._closed:
                raise ChannelClosed("broadcast closed")
            self._ready.clear()
            await self._ready.wait()

    def unsubscribe(self) -> None:
        self._broadcast._subscriptions.discard(self)
        self._close()


class MessageBroadcast(Generic[T]):
    """Sending end; create subscriptions with :meth:`subscribe`."""

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("broadcast capacity must be at least 1")
        self.capacity = capacity
        self._subscriptions: Set[Subscription[T]] = set()
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def receiver_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self) -> Subscription[T]:
        if self._closed:
            raise ChannelClosed("broadcast closed")
        subscription: Subscription[T] = Subscription(self, self.capacity)
        self._subscriptions.add(subscription)
        return subscription

    def send(self, item: T) -> int:
        """
        Deliver ``item`` to every subscription. Returns the receiver count.

        Raises:
            ChannelClosed: The broadcast was closed.
        """
        if self._closed:
            raise ChannelClosed("broadcast closed")
        for subscription in self._subscriptions:
            subscription._push(item)
        return len(self._subscriptions)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for subscription in self._subscriptions:
            subscription._close()
