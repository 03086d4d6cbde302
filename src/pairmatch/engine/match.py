from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal

from .board import Board
from .modes import ModePolicy
from .types import DeferredEvent, Event, SelectionState

SelectOutcome = Literal["ignored", "first", "match", "mismatch"]

PostFn = Callable[[DeferredEvent, float], None]
RecordFn = Callable[[Event], None]


@dataclass(frozen=True)
class SessionConfig:
    tick_period: float = 1.0
    match_check_delay: float = 0.4  # lets the matched pair fade before the win check
    mismatch_flip_delay: float = 0.6
    shake_delay: float = 0.3
    loss_delay: float = 1.2  # after the shake starts


class MatchEngine:
    """Selection state machine for one dealt board.

    Deferred work (win checks, mismatch flip-backs) is handed to `post` as
    DeferredEvent values; the owning session routes them back through
    `check_win` and `resolve_mismatch` when they fall due.
    """

    def __init__(
        self,
        board: Board,
        policy: ModePolicy,
        *,
        generation: int,
        post: PostFn,
        record: RecordFn,
        config: SessionConfig | None = None,
    ) -> None:
        self.board = board
        self.policy = policy
        self.generation = generation
        self.config = config or SessionConfig()
        self._post = post
        self._record = record
        self.first_selected: int | None = None
        self.pending_resolutions = 0
        self.halted = False

    @property
    def state(self) -> SelectionState:
        if self.first_selected is not None:
            return "one_selected"
        if self.pending_resolutions > 0:
            return "resolving"
        return "idle"

    def halt(self) -> None:
        self.halted = True

    def _ignore(self, index: int, reason: str) -> SelectOutcome:
        self._record({"type": "TAP_IGNORED", "index": index, "reason": reason})
        return "ignored"

    def close_stray(self, except_index: int | None = None) -> list[int]:
        closed = self.board.close_stray(except_index)
        self.first_selected = None
        return closed

    def select(self, index: int) -> SelectOutcome:
        self.board.check_index(index)
        if self.halted:
            return self._ignore(index, "not_playing")
        card = self.board[index]
        if card.matched:
            return self._ignore(index, "matched")
        if card.face_up or index == self.first_selected:
            return self._ignore(index, "face_up")

        if self.first_selected is None:
            self.close_stray(except_index=index)
            card.face_up = True
            self.first_selected = index
            self._record({"type": "CARD_FLIPPED", "index": index, "card_id": card.id})
            return "first"

        first = self.first_selected
        other = self.board[first]
        card.face_up = True
        self.first_selected = None
        self._record({"type": "CARD_FLIPPED", "index": index, "card_id": card.id})

        if other.content == card.content:
            other.matched = True
            card.matched = True
            self._record({"type": "PAIR_MATCHED", "indices": [first, index], "content": card.content})
            self._post(
                DeferredEvent(kind="win_check", generation=self.generation),
                self.config.match_check_delay,
            )
            return "match"

        other.mismatched = True
        card.mismatched = True
        self.pending_resolutions += 1
        self._record({"type": "PAIR_MISMATCHED", "indices": [first, index]})
        self._post(
            DeferredEvent(
                kind="mismatch_resolve",
                generation=self.generation,
                indices=(first, index),
                board_generation=self.board.generation,
            ),
            self.config.mismatch_flip_delay,
        )
        return "mismatch"

    def check_win(self) -> bool:
        return self.board.is_all_matched()

    def resolve_mismatch(self, event: DeferredEvent) -> bool:
        """Flip a mismatched pair back and apply the mode's mismatch hook.

        Returns True when the hook rebuilt the board.
        """
        self.pending_resolutions = max(0, self.pending_resolutions - 1)
        # A rebuild since the mismatch means these indices now hold other cards.
        if event.board_generation == self.board.generation:
            for i in event.indices:
                c = self.board[i]
                # A card reopened since the miss is no longer part of it.
                if c.mismatched and not c.matched:
                    c.turn_down()
        rebuilt = self.policy.on_mismatch_resolved(self.board)
        if rebuilt:
            self.first_selected = None
            self._record(
                {
                    "type": "BOARD_RESHUFFLED",
                    "mode": self.policy.key,
                    "wiped": self.policy.wipes_progress,
                    "board_generation": self.board.generation,
                }
            )
        self._record({"type": "MISMATCH_RESOLVED", "indices": list(event.indices)})
        return rebuilt
