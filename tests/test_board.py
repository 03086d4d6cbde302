from __future__ import annotations

import random
from collections import Counter

import pytest

from pairmatch.engine.board import Board, deal
from pairmatch.engine.types import Card, ConfigError

POOL = ["🐶", "🐱", "🐭", "🐹", "🐰", "🦊", "🐻", "🐼", "🐨", "🦁", "🐯", "🐸"]


def _board(contents: str, seed: int = 0) -> Board:
    return Board(cards=[Card(id=i, content=c) for i, c in enumerate(contents)], rng=random.Random(seed))


def _assert_pairing(board: Board) -> None:
    counts = board.content_counts()
    assert counts
    assert all(n == 2 for n in counts.values()), counts


def test_deal_is_reproducible_with_seeded_rng() -> None:
    b1 = deal(6, POOL, random.Random(42))
    b2 = deal(6, POOL, random.Random(42))
    assert [c.content for c in b1.cards] == [c.content for c in b2.cards]
    assert len(b1) == 12
    counts = b1.content_counts()
    assert len(counts) == 6
    assert set(counts) == set(POOL[:6])
    _assert_pairing(b1)


def test_deal_cards_start_face_down_with_sequential_ids() -> None:
    b = deal(4, POOL, random.Random(1))
    assert sorted(c.id for c in b.cards) == list(range(8))
    assert not any(c.face_up or c.matched or c.mismatched for c in b.cards)
    assert not b.is_all_matched()


def test_deal_rejects_short_pool() -> None:
    with pytest.raises(ConfigError):
        deal(6, POOL[:5], random.Random(0))


def test_deal_rejects_duplicate_symbols_and_zero_pairs() -> None:
    with pytest.raises(ConfigError):
        deal(2, ["A", "A", "B"], random.Random(0))
    with pytest.raises(ConfigError):
        deal(0, POOL, random.Random(0))


def test_is_all_matched_needs_a_non_empty_board() -> None:
    assert not Board(cards=[]).is_all_matched()
    b = _board("AA")
    for c in b.cards:
        c.matched = True
        c.face_up = True
    assert b.is_all_matched()


def test_close_stray_skips_matched_and_excepted_cards() -> None:
    b = _board("ABAB")
    b[0].face_up = True
    b[0].mismatched = True
    b[1].face_up = True
    b[2].face_up = True
    b[2].matched = True
    closed = b.close_stray(except_index=1)
    assert closed == [0]
    assert not b[0].face_up and not b[0].mismatched
    assert b[1].face_up
    assert b[2].face_up and b[2].matched


def test_reshuffle_partial_keeps_matched_cards_and_ids() -> None:
    b = _board("ABCABC", seed=3)
    for i in (0, 3):
        b[i].matched = True
        b[i].face_up = True
    b[1].face_up = True
    ids_before = [c.id for c in b.cards]

    b.reshuffle_partial()

    assert [c.id for c in b.cards] == ids_before
    assert b[0].content == "A" and b[0].matched and b[0].face_up
    assert b[3].content == "A" and b[3].matched
    unmatched = [b[i] for i in (1, 2, 4, 5)]
    assert Counter(c.content for c in unmatched) == Counter("BCBC")
    assert not any(c.face_up or c.matched or c.mismatched for c in unmatched)
    assert b.generation == 1
    _assert_pairing(b)


def test_reshuffle_full_wipes_progress_and_renumbers() -> None:
    b = _board("ABCABC", seed=5)
    for i in (0, 3):
        b[i].matched = True
        b[i].face_up = True

    b.reshuffle_full()

    assert sorted(c.id for c in b.cards) == list(range(6))
    assert not any(c.matched or c.face_up for c in b.cards)
    assert b.generation == 1
    _assert_pairing(b)


def test_pairing_survives_many_reshuffles() -> None:
    b = deal(8, POOL, random.Random(11))
    rng = random.Random(99)
    for step in range(50):
        # match a random pair now and then so partial shuffles have something to skip
        if step % 7 == 0:
            open_ = [c for c in b.cards if not c.matched]
            if open_:
                target = open_[0].content
                for c in b.cards:
                    if c.content == target:
                        c.matched = True
                        c.face_up = True
        if rng.random() < 0.5:
            b.reshuffle_partial()
        else:
            b.reshuffle_full()
        _assert_pairing(b)
    assert b.generation == 50


def test_reveal_all_only_touches_unmatched() -> None:
    b = _board("ABAB")
    b[0].matched = True
    b[0].face_up = True
    b.reveal_all()
    assert all(c.face_up for c in b.cards)
    assert [c.matched for c in b.cards] == [True, False, False, False]
