from __future__ import annotations

from typing import Callable

from .scheduler import Handle, Scheduler
from .types import TimerDisplay, Urgency

WARNING_SECONDS = 30
CRITICAL_SECONDS = 10


def format_clock(seconds: int) -> str:
    """Format whole seconds as m:ss."""
    seconds = max(0, seconds)
    return f"{seconds // 60}:{seconds % 60:02d}"


def urgency_for(remaining: int) -> Urgency:
    if remaining <= CRITICAL_SECONDS:
        return "critical"
    if remaining <= WARNING_SECONDS:
        return "warning"
    return "normal"


class TimerController:
    """Elapsed/countdown clock driven by a repeating scheduler tick."""

    def __init__(
        self,
        scheduler: Scheduler,
        on_expired: Callable[[], None],
        *,
        tick_period: float = 1.0,
    ) -> None:
        self._scheduler = scheduler
        self._on_expired = on_expired
        self._tick_period = tick_period
        self._handle: Handle | None = None
        self._countdown: int | None = None
        self._expired = False
        self.elapsed_seconds = 0
        self.remaining_seconds = 0

    @property
    def active(self) -> bool:
        return self._handle is not None

    @property
    def has_countdown(self) -> bool:
        return self._countdown is not None

    def reset(self, countdown: int | None) -> None:
        self.stop()
        self._countdown = countdown
        self._expired = False
        self.elapsed_seconds = 0
        self.remaining_seconds = countdown if countdown is not None else 0

    def start(self) -> None:
        self.stop()
        self._handle = self._scheduler.call_every(self._tick_period, self._tick)

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _tick(self) -> None:
        if self._handle is None:
            return
        self.elapsed_seconds += 1
        if self._countdown is None:
            return
        self.remaining_seconds -= 1
        if self.remaining_seconds <= 0:
            self.remaining_seconds = 0
            self.stop()
            if not self._expired:
                self._expired = True
                self._on_expired()

    def display(self) -> TimerDisplay:
        if self._countdown is None:
            return TimerDisplay(elapsed=self.elapsed_seconds, remaining=0, has_countdown=False)
        return TimerDisplay(
            elapsed=self.elapsed_seconds,
            remaining=self.remaining_seconds,
            has_countdown=True,
            urgency=urgency_for(self.remaining_seconds),
        )
