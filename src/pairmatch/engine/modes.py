from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .board import Board
from .types import Mode, ModeKey

# Hooks receive the board after the mismatched pair has been turned down and
# return True when they rebuilt it.
MismatchHook = Callable[[Board], bool]


def _no_effect(board: Board) -> bool:
    return False


def _reshuffle_unmatched(board: Board) -> bool:
    board.close_stray()
    board.reshuffle_partial()
    return True


def _wipe_and_reshuffle(board: Board) -> bool:
    board.close_stray()
    board.reshuffle_full()
    return True


@dataclass(frozen=True)
class ModePolicy:
    key: ModeKey
    on_mismatch_resolved: MismatchHook
    wipes_progress: bool = False


POLICIES: dict[ModeKey, ModePolicy] = {
    "free_play": ModePolicy(key="free_play", on_mismatch_resolved=_no_effect),
    "challenge": ModePolicy(key="challenge", on_mismatch_resolved=_no_effect),
    "impossible": ModePolicy(
        key="impossible", on_mismatch_resolved=_reshuffle_unmatched
    ),
    "genie": ModePolicy(
        key="genie",
        on_mismatch_resolved=_wipe_and_reshuffle,
        wipes_progress=True,
    ),
}


def policy_for(mode: Mode) -> ModePolicy:
    return POLICIES[mode.key]


def countdown_seconds(mode: Mode) -> int | None:
    """Starting countdown for `mode`, or None when the mode is untimed."""
    return mode.duration_seconds
