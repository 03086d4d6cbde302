from __future__ import annotations

import random
from collections import Counter

import pytest

from pairmatch.engine.scheduler import ManualScheduler
from pairmatch.engine.session import GameSession
from pairmatch.engine.types import (
    Card,
    Challenge,
    ConfigError,
    FreePlay,
    Genie,
    Impossible,
    Mode,
    mode_from_key,
)

POOL = ["🐶", "🐱", "🐭", "🐹", "🐰", "🦊", "🐻", "🐼", "🐨", "🦁", "🐯", "🐸"]


def _session(mode: Mode, layout: str = "ABAB") -> tuple[GameSession, ManualScheduler]:
    """Start a game, then lay out a known board (one letter per card)."""
    sched = ManualScheduler()
    session = GameSession(sched, content_pool=POOL, seed=7)
    session.start_game(mode, len(layout) // 2)
    board = session.board
    assert board is not None
    board.cards[:] = [Card(id=i, content=c) for i, c in enumerate(layout)]
    return session, sched


def _contents(session: GameSession) -> list[str]:
    return [c.content for c in session.get_board_snapshot()]


def _types(session: GameSession) -> list[object]:
    return [e["type"] for e in session.event_log]


def test_match_then_win_after_deferred_check() -> None:
    session, sched = _session(FreePlay())
    assert session.get_phase() == "playing"

    assert session.tap_card(0) == "first"
    assert session.selection_state == "one_selected"
    assert session.get_board_snapshot()[0].face_up

    assert session.tap_card(2) == "match"
    cards = session.get_board_snapshot()
    assert cards[0].matched and cards[2].matched
    assert cards[0].face_up and cards[2].face_up
    assert session.selection_state == "idle"

    sched.advance(0.4)
    assert session.get_phase() == "playing"

    # taps are accepted while the win check is pending
    assert session.tap_card(1) == "first"
    assert session.tap_card(3) == "match"
    assert session.get_phase() == "playing"
    sched.advance(0.39)
    assert session.get_phase() == "playing"
    sched.advance(0.02)
    assert session.get_phase() == "won"
    assert not session.timer.active
    assert "PHASE_CHANGED" in _types(session)


def test_mismatch_flips_back_in_free_play() -> None:
    session, sched = _session(FreePlay())
    session.tap_card(0)
    assert session.tap_card(1) == "mismatch"
    cards = session.get_board_snapshot()
    assert cards[0].mismatched and cards[1].mismatched
    assert session.selection_state == "resolving"

    sched.advance(0.6)
    cards = session.get_board_snapshot()
    assert not any(c.face_up or c.mismatched for c in cards)
    assert _contents(session) == list("ABAB")
    assert session.selection_state == "idle"
    assert session.board_generation == 1


def test_mismatch_leaves_challenge_board_alone() -> None:
    session, sched = _session(Challenge(duration_seconds=60))
    session.tap_card(0)
    session.tap_card(1)
    sched.advance(0.6)
    assert _contents(session) == list("ABAB")
    assert [c.id for c in session.get_board_snapshot()] == [0, 1, 2, 3]


def test_impossible_mismatch_reshuffles_unmatched_positions() -> None:
    session, sched = _session(Impossible(duration_seconds=60), "ABCABC")
    session.tap_card(0)
    session.tap_card(3)  # A pair
    session.tap_card(1)
    assert session.tap_card(2) == "mismatch"
    generation = session.board_generation

    sched.advance(0.6)

    cards = session.get_board_snapshot()
    assert [c.id for c in cards] == list(range(6))
    assert cards[0].matched and cards[3].matched
    assert cards[0].content == "A" and cards[3].content == "A"
    unmatched = [cards[i] for i in (1, 2, 4, 5)]
    assert Counter(c.content for c in unmatched) == Counter("BCBC")
    assert not any(c.face_up or c.mismatched for c in unmatched)
    assert session.board_generation == generation + 1
    assert "BOARD_RESHUFFLED" in _types(session)


def test_genie_mismatch_wipes_matches_but_keeps_the_clock() -> None:
    session, sched = _session(Genie(duration_seconds=30), "ABCABC")
    sched.advance(2.0)
    assert session.get_timer_display().remaining == 28

    session.tap_card(0)
    session.tap_card(3)
    session.tap_card(1)
    session.tap_card(2)
    sched.advance(0.6)

    cards = session.get_board_snapshot()
    assert not any(c.matched or c.face_up for c in cards)
    assert sorted(c.id for c in cards) == list(range(6))
    assert Counter(c.content for c in cards) == Counter("ABCABC")
    assert session.get_phase() == "playing"
    assert session.get_timer_display().remaining == 28
    sched.advance(0.4)
    assert session.get_timer_display().remaining == 27


def test_untimed_genie_has_no_countdown() -> None:
    session, sched = _session(Genie(), "ABAB")
    sched.advance(5.0)
    display = session.get_timer_display()
    assert display.elapsed == 5
    assert not display.has_countdown
    assert session.get_phase() == "playing"


def test_timeout_reveals_board_then_loses() -> None:
    session, sched = _session(Challenge(duration_seconds=1))
    session.tap_card(0)
    session.tap_card(2)

    sched.advance(1.0)
    display = session.get_timer_display()
    assert display.remaining == 0
    assert display.urgency == "critical"
    assert not session.timer.active
    assert all(c.face_up for c in session.get_board_snapshot())
    assert session.get_phase() == "playing"
    assert session.tap_card(1) == "ignored"

    sched.advance(0.3)
    assert session.is_shaking()
    assert session.get_phase() == "playing"

    sched.advance(1.25)
    assert session.get_phase() == "lost"
    sched.advance(5.0)
    assert session.get_timer_display().elapsed == 1
    assert _types(session).count("TIMER_EXPIRED") == 1


def test_pending_flip_back_is_cancelled_by_timeout() -> None:
    session, sched = _session(Impossible(duration_seconds=1))
    sched.advance(0.7)
    session.tap_card(0)
    session.tap_card(1)  # resolution due at 1.3, clock runs out at 1.0
    sched.advance(3.0)
    assert session.get_phase() == "lost"
    assert all(c.face_up for c in session.get_board_snapshot())
    assert _contents(session) == list("ABAB")


def test_last_pair_before_expiry_wins() -> None:
    session, sched = _session(Challenge(duration_seconds=1))
    session.tap_card(0)
    session.tap_card(2)
    sched.advance(0.8)
    session.tap_card(1)
    session.tap_card(3)
    sched.advance(0.2)  # tick lands before the queued win check
    assert session.get_phase() == "won"
    sched.advance(2.0)
    assert session.get_phase() == "won"


def test_taps_on_matched_or_face_up_cards_change_nothing() -> None:
    session, _ = _session(FreePlay(), "ABCABC")
    session.tap_card(0)
    session.tap_card(3)
    session.tap_card(1)
    before = session.get_board_snapshot()
    assert session.tap_card(0) == "ignored"
    assert session.tap_card(3) == "ignored"
    assert session.tap_card(1) == "ignored"
    assert session.get_board_snapshot() == before
    assert session.first_selected == 1


def test_out_of_range_tap_raises_index_error() -> None:
    session, _ = _session(FreePlay())
    session.tap_card(0)
    before = session.get_board_snapshot()
    with pytest.raises(IndexError):
        session.tap_card(4)
    with pytest.raises(IndexError):
        session.tap_card(-1)
    assert session.get_board_snapshot() == before
    assert session.first_selected == 0


def test_tap_during_window_survives_free_play_resolution() -> None:
    session, sched = _session(FreePlay(), "ABCABC")
    session.tap_card(0)
    session.tap_card(1)
    assert session.tap_card(2) == "first"  # closes the mismatched pair early
    assert session.selection_state == "one_selected"

    sched.advance(0.6)
    cards = session.get_board_snapshot()
    assert cards[2].face_up
    assert not cards[0].face_up and not cards[1].face_up
    assert session.selection_state == "one_selected"
    assert session.first_selected == 2


def test_stray_tap_is_closed_before_impossible_reshuffle() -> None:
    session, sched = _session(Impossible(duration_seconds=60), "ABCABC")
    session.tap_card(0)
    session.tap_card(1)
    session.tap_card(2)  # stray card open during the window

    sched.advance(0.6)
    cards = session.get_board_snapshot()
    assert not any(c.face_up for c in cards)
    assert session.first_selected is None
    assert session.selection_state == "idle"
    assert all(n == 2 for n in Counter(c.content for c in cards).values())


def test_pair_matched_during_window_stays_face_up() -> None:
    session, sched = _session(FreePlay(), "ABCABC")
    session.tap_card(1)
    session.tap_card(2)  # B/C mismatch, resolution pending
    session.tap_card(0)
    session.tap_card(3)  # A pair
    session.tap_card(1)
    assert session.tap_card(4) == "match"  # B pair, includes a card from the pending mismatch

    sched.advance(0.6)
    cards = session.get_board_snapshot()
    assert cards[1].matched and cards[1].face_up
    assert not cards[2].face_up


def test_at_most_one_open_card_before_second_selection() -> None:
    session, sched = _session(FreePlay(), "ABCABC")
    for first, second in [(0, 1), (2, 4), (5, 3), (0, 3)]:
        session.tap_card(first)
        open_ = [c for c in session.get_board_snapshot() if c.face_up and not c.matched and not c.mismatched]
        assert len(open_) == 1
        session.tap_card(second)
        sched.advance(0.6)


def test_reset_redeals_same_mode_and_restarts_clock() -> None:
    session, sched = _session(Challenge(duration_seconds=45))
    sched.advance(3.0)
    session.tap_card(0)
    generation = session.generation

    session.reset()

    assert session.get_phase() == "playing"
    assert session.get_mode() == Challenge(duration_seconds=45)
    assert session.pair_count == 2
    assert session.generation == generation + 1
    display = session.get_timer_display()
    assert display.elapsed == 0 and display.remaining == 45
    assert not any(c.face_up for c in session.get_board_snapshot())
    sched.advance(1.0)
    assert session.get_timer_display().elapsed == 1


def test_abandon_returns_to_setup_and_discards_state() -> None:
    session, sched = _session(Challenge(duration_seconds=10))
    session.tap_card(0)
    session.tap_card(1)
    session.abandon()

    assert session.get_phase() == "setup"
    assert session.get_mode() is None
    assert session.get_board_snapshot() == ()
    assert session.tap_card(0) == "ignored"
    sched.advance(20.0)
    assert session.get_phase() == "setup"
    assert session.get_timer_display().elapsed == 0
    assert session.timer.active is False


class _NoCancel:
    def cancel(self) -> None:
        pass


class _LeakyScheduler(ManualScheduler):
    """One-shot callbacks cannot be cancelled, so only generation tags protect the session."""

    def call_later(self, delay, callback):  # type: ignore[override]
        super().call_later(delay, callback)
        return _NoCancel()


def test_stale_callbacks_from_previous_game_are_dropped() -> None:
    sched = _LeakyScheduler()
    session = GameSession(sched, content_pool=POOL, seed=3)
    session.start_game(Impossible(duration_seconds=60), 2)
    board = session.board
    assert board is not None
    board.cards[:] = [Card(id=i, content=c) for i, c in enumerate("ABAB")]
    session.tap_card(0)
    session.tap_card(1)

    session.reset()
    fresh = session.get_board_snapshot()
    generation = session.board_generation
    session.tap_card(0)

    sched.advance(0.6)
    assert "STALE_EVENT_DROPPED" in _types(session)
    assert session.board_generation == generation
    assert session.get_board_snapshot()[0].face_up
    assert [c.content for c in session.get_board_snapshot()] == [c.content for c in fresh]


def test_start_game_config_error_leaves_session_untouched() -> None:
    sched = ManualScheduler()
    session = GameSession(sched, content_pool=POOL[:4], seed=1)
    with pytest.raises(ConfigError):
        session.start_game(FreePlay(), 6)
    assert session.get_phase() == "setup"
    assert session.board is None

    session.start_game(FreePlay(), 4)
    before = session.get_board_snapshot()
    with pytest.raises(ConfigError):
        session.start_game(FreePlay(), 8)
    assert session.get_board_snapshot() == before
    assert session.get_phase() == "playing"


def test_mode_from_key_validates_durations() -> None:
    assert mode_from_key("free_play") == FreePlay()
    assert mode_from_key("challenge", 90) == Challenge(duration_seconds=90)
    assert mode_from_key("impossible", 5) == Impossible(duration_seconds=5)
    assert mode_from_key("genie", 0) == Genie(duration_seconds=None)
    assert mode_from_key("genie", 40) == Genie(duration_seconds=40)
    with pytest.raises(ConfigError):
        mode_from_key("challenge", 0)
    with pytest.raises(ConfigError):
        mode_from_key("impossible")
    with pytest.raises(ConfigError):
        mode_from_key("sudden_death", 10)


def test_late_flip_back_leaves_reopened_selection_alone() -> None:
    session, sched = _session(FreePlay(), "ABCABC")
    assert session.tap_card(0) == "first"
    assert session.tap_card(1) == "mismatch"
    assert session.tap_card(2) == "first"
    assert session.tap_card(4) == "mismatch"
    # card 0 is picked again before its old miss resolves
    assert session.tap_card(0) == "first"

    sched.advance(0.6)
    cards = session.get_board_snapshot()
    assert cards[0].face_up and not cards[0].matched
    assert session.first_selected == 0
    assert session.selection_state == "one_selected"

    assert session.tap_card(0) == "ignored"
    assert not session.get_board_snapshot()[0].matched
    assert session.tap_card(3) == "match"
    assert session.tap_card(1) == "first"
    assert session.tap_card(4) == "match"
    assert session.tap_card(2) == "first"
    assert session.tap_card(5) == "match"
    sched.advance(0.4)
    assert session.get_phase() == "won"


@pytest.mark.parametrize(
    "mode",
    [FreePlay(), Challenge(duration_seconds=60), Impossible(duration_seconds=60), Genie()],
)
def test_random_taps_keep_matched_cards_paired_and_face_up(mode: Mode) -> None:
    session, sched = _session(mode, "ABCDABCD")
    r = random.Random(11)
    for _ in range(400):
        if session.get_phase() != "playing":
            break
        if r.random() < 0.25:
            sched.advance(r.choice([0.1, 0.3, 0.6]))
        else:
            session.tap_card(r.randrange(8))
        cards = session.get_board_snapshot()
        matched = Counter(c.content for c in cards if c.matched)
        assert all(n == 2 for n in matched.values())
        assert all(c.face_up for c in cards if c.matched)
        first = session.first_selected
        if first is not None:
            assert cards[first].face_up and not cards[first].matched


def test_fired_events_are_not_retained() -> None:
    session, sched = _session(FreePlay())
    session.tap_card(0)
    session.tap_card(1)
    assert session.pending_events == 1
    session.tap_card(2)
    assert session.tap_card(0) == "match"
    assert session.pending_events == 2
    sched.advance(0.6)
    assert session.pending_events == 0
