from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Phase = Literal["setup", "playing", "won", "lost"]
SelectionState = Literal["idle", "one_selected", "resolving"]
ModeKey = Literal["free_play", "challenge", "impossible", "genie"]
Urgency = Literal["normal", "warning", "critical"]

Event = dict[str, object]


class ConfigError(ValueError):
    pass


@dataclass
class Card:
    id: int
    content: str
    face_up: bool = False
    matched: bool = False
    mismatched: bool = False

    def turn_down(self) -> None:
        self.face_up = False
        self.mismatched = False

    def view(self) -> "CardView":
        return CardView(
            id=self.id,
            content=self.content,
            face_up=self.face_up,
            matched=self.matched,
            mismatched=self.mismatched,
        )


@dataclass(frozen=True)
class CardView:
    """Read-only copy of a card handed to renderers."""

    id: int
    content: str
    face_up: bool
    matched: bool
    mismatched: bool


@dataclass(frozen=True)
class FreePlay:
    key: Literal["free_play"] = "free_play"

    @property
    def duration_seconds(self) -> int | None:
        return None


@dataclass(frozen=True)
class Challenge:
    duration_seconds: int
    key: Literal["challenge"] = "challenge"


@dataclass(frozen=True)
class Impossible:
    duration_seconds: int
    key: Literal["impossible"] = "impossible"


@dataclass(frozen=True)
class Genie:
    duration_seconds: int | None = None  # None = unlimited
    key: Literal["genie"] = "genie"


Mode = FreePlay | Challenge | Impossible | Genie


def mode_from_key(key: str, duration_seconds: int | None = None) -> Mode:
    """Build a mode from a UI key and an optional duration in seconds."""
    if key == "free_play":
        return FreePlay()
    if key in ("challenge", "impossible"):
        if duration_seconds is None or duration_seconds <= 0:
            raise ConfigError(f"Mode {key} needs a positive duration, got {duration_seconds!r}")
        if key == "challenge":
            return Challenge(duration_seconds=duration_seconds)
        return Impossible(duration_seconds=duration_seconds)
    if key == "genie":
        if duration_seconds is not None and duration_seconds < 0:
            raise ConfigError(f"Negative duration for genie: {duration_seconds}")
        # a zero total means the timer toggle was left off
        return Genie(duration_seconds=duration_seconds or None)
    raise ConfigError(f"Unknown mode: {key}")


@dataclass(frozen=True)
class TimerDisplay:
    elapsed: int
    remaining: int
    has_countdown: bool
    urgency: Urgency = "normal"


DeferredKind = Literal["win_check", "mismatch_resolve", "loss_shake", "loss_final"]


@dataclass(frozen=True)
class DeferredEvent:
    """A scheduled engine callback, tagged with the session generation that queued it."""

    kind: DeferredKind
    generation: int
    indices: tuple[int, ...] = ()
    board_generation: int = 0
