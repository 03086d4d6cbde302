from __future__ import annotations

from dataclasses import dataclass

from .types import Mode


@dataclass(frozen=True)
class StartGameAction:
    mode: Mode
    pair_count: int
    content_pool: tuple[str, ...] | None = None


@dataclass(frozen=True)
class TapCardAction:
    index: int


@dataclass(frozen=True)
class ResetAction:
    pass


@dataclass(frozen=True)
class AbandonAction:
    pass


@dataclass(frozen=True)
class AdvanceClockAction:
    """Let `seconds` of virtual time pass (ticks and deferred events fire)."""

    seconds: float


Action = StartGameAction | TapCardAction | ResetAction | AbandonAction | AdvanceClockAction
