from __future__ import annotations


from .actions import (
    AbandonAction,
    Action,
    AdvanceClockAction,
    ResetAction,
    StartGameAction,
    TapCardAction,
)
from .session import GameSession
from .types import CardView, Mode, TimerDisplay, mode_from_key


def mode_to_dict(m: Mode | None) -> dict[str, object] | None:
    if m is None:
        return None
    return {"key": m.key, "duration_seconds": m.duration_seconds}


def mode_from_dict(d: dict[str, object]) -> Mode:
    key = d.get("key")
    seconds = d.get("duration_seconds")
    if not isinstance(key, str):
        raise ValueError("mode.key must be a string")
    if seconds is not None and not isinstance(seconds, int):
        raise ValueError("mode.duration_seconds must be an int or null")
    return mode_from_key(key, seconds)


def action_to_dict(a: Action) -> dict[str, object]:
    if isinstance(a, StartGameAction):
        return {
            "type": "start_game",
            "mode": mode_to_dict(a.mode),
            "pair_count": a.pair_count,
            "content_pool": list(a.content_pool) if a.content_pool is not None else None,
        }
    if isinstance(a, TapCardAction):
        return {"type": "tap", "index": a.index}
    if isinstance(a, ResetAction):
        return {"type": "reset"}
    if isinstance(a, AbandonAction):
        return {"type": "abandon"}
    if isinstance(a, AdvanceClockAction):
        return {"type": "advance", "seconds": a.seconds}
    # should be unreachable
    return {"type": "unknown"}


def _card_to_dict(c: CardView) -> dict[str, object]:
    return {
        "id": c.id,
        "content": c.content,
        "face_up": c.face_up,
        "matched": c.matched,
        "mismatched": c.mismatched,
    }


def _timer_to_dict(t: TimerDisplay) -> dict[str, object]:
    return {
        "elapsed": t.elapsed,
        "remaining": t.remaining,
        "has_countdown": t.has_countdown,
        "urgency": t.urgency,
    }


def snapshot(session: GameSession) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of the current session."""
    return {
        "seed": session.seed,
        "phase": session.get_phase(),
        "mode": mode_to_dict(session.get_mode()),
        "pair_count": session.pair_count,
        "board_generation": session.board_generation,
        "selection": session.selection_state,
        "first_selected": session.first_selected,
        "shaking": session.is_shaking(),
        "timer": _timer_to_dict(session.get_timer_display()),
        "cards": [_card_to_dict(c) for c in session.get_board_snapshot()],
        "action_log": [action_to_dict(a) for a in session.action_log],
    }
