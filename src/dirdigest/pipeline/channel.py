"""Bounded, closable, cancellation-aware stream between pipeline stages.

``queue.Queue`` cannot be closed and cannot be woken by a cancellation
signal, so stages talk through ``Channel`` instead. Any number of threads
may put and get concurrently. A capacity of 0 makes every put an
unbuffered handoff: it returns only once a consumer has taken the item.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Deque, Generic, Iterator, Optional, Set, Tuple, TypeVar

from dirdigest.errors import ChannelClosed, PipelineCancelled
from dirdigest.pipeline.cancel import CancelScope

T = TypeVar("T")


class Channel(Generic[T]):
    """Multi-producer, multi-consumer stream that is closed exactly once.

    Args:
        capacity: Items that may wait in the buffer. 0 means rendezvous.
        name: Used in error messages and logs.

    Raises:
        ValueError: If ``capacity`` is negative.
    """

    def __init__(self, capacity: int = 0, name: str = "channel") -> None:
        if capacity < 0:
            raise ValueError("capacity must be >= 0")
        self.name = name
        self._capacity = capacity
        self._cond = threading.Condition()
        self._items: Deque[Tuple[int, T]] = deque()
        self._closed = False
        self._seq = 0
        self._watched: Set[int] = set()

    # -- Producer API --

    def put(self, item: T, scope: Optional[CancelScope] = None) -> None:
        """Send ``item``, blocking while the buffer is full.

        With capacity 0 this also blocks until a consumer took the item. If
        ``scope`` is cancelled while blocked, an item nobody has taken yet is
        withdrawn and ``PipelineCancelled`` is raised.

        Raises:
            ChannelClosed: If the channel is closed.
            PipelineCancelled: If ``scope`` is cancelled before delivery.
        """
        with self._cond:
            self._watch(scope)
            while True:
                if self._closed:
                    raise ChannelClosed(f"put on closed {self.name}")
                self._check(scope)
                if len(self._items) < max(self._capacity, 1):
                    break
                self._cond.wait()

            self._seq += 1
            ticket = self._seq
            self._items.append((ticket, item))
            self._cond.notify_all()

            if self._capacity > 0:
                return

            while self._pending(ticket):
                if scope is not None and scope.cancelled:
                    self._withdraw(ticket)
                    self._check(scope)
                self._cond.wait()

    def close(self) -> None:
        """Mark the end of the stream. Buffered items remain receivable.

        Raises:
            ChannelClosed: If the channel was already closed.
        """
        with self._cond:
            if self._closed:
                raise ChannelClosed(f"{self.name} closed twice")
            self._closed = True
            self._cond.notify_all()

    # -- Consumer API --

    def get(self, scope: Optional[CancelScope] = None) -> T:
        """Receive the next item, blocking while the buffer is empty.

        Raises:
            ChannelClosed: If the channel is closed and drained.
            PipelineCancelled: If ``scope`` is cancelled.
        """
        with self._cond:
            self._watch(scope)
            while True:
                self._check(scope)
                if self._items:
                    _, item = self._items.popleft()
                    self._cond.notify_all()
                    return item
                if self._closed:
                    raise ChannelClosed(f"{self.name} is closed")
                self._cond.wait()

    def receive(self, scope: Optional[CancelScope] = None) -> Iterator[T]:
        """Yield items until the channel is closed and drained."""
        while True:
            try:
                item = self.get(scope)
            except ChannelClosed:
                return
            yield item

    def __iter__(self) -> Iterator[T]:
        return self.receive()

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    # -- Internal --

    def _watch(self, scope: Optional[CancelScope]) -> None:
        if scope is None or id(scope) in self._watched:
            return
        self._watched.add(id(scope))
        scope.on_cancel(self._wake)

    def _wake(self) -> None:
        with self._cond:
            self._cond.notify_all()

    def _check(self, scope: Optional[CancelScope]) -> None:
        if scope is not None and scope.cancelled:
            raise PipelineCancelled(
                f"{self.name}: cancelled by {type(scope.error).__name__}",
                original_error=scope.error,
            )

    def _pending(self, ticket: int) -> bool:
        return any(t == ticket for t, _ in self._items)

    def _withdraw(self, ticket: int) -> None:
        self._items = deque((t, i) for t, i in self._items if t != ticket)
        self._cond.notify_all()
