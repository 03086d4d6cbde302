from __future__ import annotations

import heapq
from dataclasses import dataclass, field
from typing import Callable, Protocol

Callback = Callable[[], None]


class Handle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Deferred-callback facility supplied by the environment."""

    def call_later(self, delay: float, callback: Callback) -> Handle: ...

    def call_every(self, period: float, callback: Callback) -> Handle: ...


@dataclass(order=True)
class _Entry:
    due: float
    seq: int
    callback: Callback = field(compare=False)
    period: float | None = field(default=None, compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Virtual-clock event queue.

    Nothing fires until `advance()` moves the clock. Entries due at the same
    instant fire in the order they were scheduled. The pygame client feeds
    it frame deltas; tests drive it explicitly.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list[_Entry] = []
        self._seq = 0

    def _push(self, due: float, callback: Callback, period: float | None) -> _Entry:
        entry = _Entry(due=due, seq=self._seq, callback=callback, period=period)
        self._seq += 1
        heapq.heappush(self._queue, entry)
        return entry

    def call_later(self, delay: float, callback: Callback) -> _Entry:
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        return self._push(self.now + delay, callback, None)

    def call_every(self, period: float, callback: Callback) -> _Entry:
        if period <= 0:
            raise ValueError(f"period must be > 0, got {period}")
        return self._push(self.now + period, callback, period)

    def pending(self) -> int:
        return sum(1 for e in self._queue if not e.cancelled)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing everything that falls due.

        Returns the number of callbacks run.
        """
        if seconds < 0:
            raise ValueError(f"cannot move the clock backwards ({seconds})")
        target = self.now + seconds
        fired = 0
        while self._queue and self._queue[0].due <= target + 1e-9:
            entry = heapq.heappop(self._queue)
            if entry.cancelled:
                continue
            self.now = max(self.now, entry.due)
            if entry.period is not None:
                # Re-arm with the same entry so its handle stays valid.
                entry.due += entry.period
                entry.seq = self._seq
                self._seq += 1
                heapq.heappush(self._queue, entry)
            entry.callback()
            fired += 1
        self.now = target
        return fired
