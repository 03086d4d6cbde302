from __future__ import annotations

import random
from typing import Callable, Iterable, Sequence

from .actions import (
    AbandonAction,
    Action,
    AdvanceClockAction,
    ResetAction,
    StartGameAction,
    TapCardAction,
)
from .board import Board, deal
from .match import MatchEngine, SelectOutcome, SessionConfig
from .modes import countdown_seconds, policy_for
from .scheduler import Handle, ManualScheduler, Scheduler
from .timer import TimerController
from .types import CardView, ConfigError, DeferredEvent, Event, Mode, Phase, SelectionState, TimerDisplay


class GameSession:
    """Top-level game state machine: setup -> playing -> won | lost.

    The session owns the board, the match engine and the timer for the
    current game. Every deferred callback it queues carries the session
    generation; starting, resetting or abandoning a game bumps the
    generation so anything queued for an older game is dropped.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        *,
        content_pool: Sequence[str] = (),
        seed: int | None = None,
        rng: random.Random | None = None,
        config: SessionConfig | None = None,
        on_event: Callable[[Event], None] | None = None,
    ) -> None:
        self.scheduler = scheduler
        self.config = config or SessionConfig()
        self.seed = seed
        self.rng = rng or random.Random(seed)
        self.generation = 0
        self.event_log: list[Event] = []
        self.action_log: list[Action] = []
        self._on_event = on_event
        self._default_pool = tuple(content_pool)

        self._phase: Phase = "setup"
        self._mode: Mode | None = None
        self._pair_count = 0
        self._pool: tuple[str, ...] = ()
        self._engine: MatchEngine | None = None
        self._shaking = False
        self._retired_generation = 0
        self._handles: list[Handle] = []
        self._timer = TimerController(
            scheduler, self._on_timer_expired, tick_period=self.config.tick_period
        )

    # -- queries ---------------------------------------------------------

    def get_phase(self) -> Phase:
        return self._phase

    def get_mode(self) -> Mode | None:
        return self._mode

    @property
    def pair_count(self) -> int:
        return self._pair_count

    @property
    def pending_events(self) -> int:
        """Deferred engine events that have been posted but not yet fired."""
        return len(self._handles)

    @property
    def board(self) -> Board | None:
        return self._engine.board if self._engine is not None else None

    def get_board_snapshot(self) -> tuple[CardView, ...]:
        if self._engine is None:
            return ()
        return self._engine.board.views()

    def get_timer_display(self) -> TimerDisplay:
        return self._timer.display()

    @property
    def timer(self) -> TimerController:
        return self._timer

    def is_shaking(self) -> bool:
        return self._shaking

    @property
    def board_generation(self) -> int:
        if self._engine is not None:
            return self._engine.board.generation
        return self._retired_generation

    @property
    def selection_state(self) -> SelectionState:
        if self._engine is None:
            return "idle"
        return self._engine.state

    @property
    def first_selected(self) -> int | None:
        return self._engine.first_selected if self._engine is not None else None

    # -- commands --------------------------------------------------------

    def start_game(
        self, mode: Mode, pair_count: int, content_pool: Sequence[str] | None = None
    ) -> None:
        pool = tuple(content_pool) if content_pool is not None else self._default_pool
        if not pool:
            raise ConfigError("No content pool supplied")
        # Deal first so a ConfigError leaves the current game untouched.
        board = deal(pair_count, pool, self.rng, generation=self.board_generation + 1)

        self._invalidate()
        self._mode = mode
        self._pair_count = pair_count
        self._pool = pool
        self._shaking = False
        self._engine = MatchEngine(
            board,
            policy_for(mode),
            generation=self.generation,
            post=self._post,
            record=self._record,
            config=self.config,
        )
        self._timer.reset(countdown_seconds(mode))
        self._set_phase("playing")
        self._timer.start()
        self._record(
            {
                "type": "GAME_STARTED",
                "mode": mode.key,
                "duration_seconds": mode.duration_seconds,
                "pair_count": pair_count,
                "board_generation": board.generation,
            }
        )

    def reset(self) -> None:
        if self._mode is None:
            return
        self._timer.stop()
        self.start_game(self._mode, self._pair_count, self._pool)

    def abandon(self) -> None:
        if self._engine is not None:
            self._retired_generation = self._engine.board.generation
        self._invalidate()
        self._engine = None
        self._mode = None
        self._pair_count = 0
        self._pool = ()
        self._shaking = False
        self._timer.reset(None)
        self._record({"type": "GAME_ABANDONED"})
        self._set_phase("setup")

    def tap_card(self, index: int) -> SelectOutcome:
        if self._engine is None:
            self._record({"type": "TAP_IGNORED", "index": index, "reason": "setup"})
            return "ignored"
        if self._phase != "playing":
            self._engine.board.check_index(index)
            self._record({"type": "TAP_IGNORED", "index": index, "reason": "not_playing"})
            return "ignored"
        return self._engine.select(index)

    # -- internals -------------------------------------------------------

    def _record(self, event: Event) -> None:
        event.setdefault("generation", self.generation)
        self.event_log.append(event)
        if self._on_event is not None:
            self._on_event(event)

    def _set_phase(self, phase: Phase) -> None:
        if phase == self._phase:
            return
        before = self._phase
        self._phase = phase
        self._record({"type": "PHASE_CHANGED", "from": before, "to": phase})

    def _invalidate(self) -> None:
        self._timer.stop()
        for h in self._handles:
            h.cancel()
        self._handles.clear()
        if self._engine is not None:
            self._engine.halt()
        self.generation += 1

    def _post(self, event: DeferredEvent, delay: float) -> None:
        def fire() -> None:
            self._handles = [h for h in self._handles if h is not handle]
            self._dispatch(event)

        handle = self.scheduler.call_later(delay, fire)
        self._handles.append(handle)

    def _dispatch(self, event: DeferredEvent) -> None:
        if event.generation != self.generation or self._engine is None:
            self._record(
                {"type": "STALE_EVENT_DROPPED", "kind": event.kind, "event_generation": event.generation}
            )
            return
        if event.kind == "win_check":
            if self._phase == "playing" and self._engine.check_win():
                self._win()
        elif event.kind == "mismatch_resolve":
            if self._phase != "playing" or self._engine.halted:
                return
            self._engine.resolve_mismatch(event)
            if self._engine.check_win():
                self._win()
        elif event.kind == "loss_shake":
            self._shaking = True
            self._record({"type": "SHAKE_STARTED"})
        elif event.kind == "loss_final":
            self._set_phase("lost")

    def _win(self) -> None:
        assert self._engine is not None
        self._timer.stop()
        self._engine.halt()
        self._set_phase("won")

    def _on_timer_expired(self) -> None:
        if self._phase != "playing" or self._engine is None:
            return
        self._record({"type": "TIMER_EXPIRED", "elapsed": self._timer.elapsed_seconds})
        if self._engine.check_win():
            # The last pair landed before the clock ran out; its win check is still queued.
            self._win()
            return
        self._timer.stop()
        self._engine.halt()
        for h in self._handles:
            h.cancel()
        self._handles.clear()
        self._engine.board.reveal_all()
        shake = DeferredEvent(kind="loss_shake", generation=self.generation)
        final = DeferredEvent(kind="loss_final", generation=self.generation)
        self._post(shake, self.config.shake_delay)
        self._post(final, self.config.shake_delay + self.config.loss_delay)


def apply_action(session: GameSession, action: Action) -> None:
    """Apply one recorded command to `session` and append it to its action log."""
    session.action_log.append(action)
    if isinstance(action, StartGameAction):
        session.start_game(action.mode, action.pair_count, action.content_pool)
    elif isinstance(action, TapCardAction):
        session.tap_card(action.index)
    elif isinstance(action, ResetAction):
        session.reset()
    elif isinstance(action, AbandonAction):
        session.abandon()
    elif isinstance(action, AdvanceClockAction):
        if not isinstance(session.scheduler, ManualScheduler):
            raise TypeError("AdvanceClockAction needs a session driven by ManualScheduler")
        session.scheduler.advance(action.seconds)
    else:
        raise TypeError(f"Unknown action: {action!r}")


def replay(
    actions: Iterable[Action],
    *,
    seed: int,
    content_pool: Sequence[str] = (),
    config: SessionConfig | None = None,
) -> GameSession:
    session = GameSession(ManualScheduler(), content_pool=content_pool, seed=seed, config=config)
    for a in actions:
        apply_action(session, a)
    return session
