from __future__ import annotations

import random
from collections import Counter
from dataclasses import dataclass, field
from typing import Sequence

from .types import Card, CardView, ConfigError


@dataclass
class Board:
    cards: list[Card]
    rng: random.Random = field(default_factory=random.Random)
    generation: int = 0

    def __len__(self) -> int:
        return len(self.cards)

    def __getitem__(self, index: int) -> Card:
        return self.cards[index]

    def check_index(self, index: int) -> None:
        if index < 0 or index >= len(self.cards):
            raise IndexError(f"Card index {index} out of range for board of {len(self.cards)}")

    def is_all_matched(self) -> bool:
        return bool(self.cards) and all(c.matched for c in self.cards)

    def close_stray(self, except_index: int | None = None) -> list[int]:
        """Turn down every face-up, unmatched card except `except_index`.

        Returns the indices that were closed.
        """
        closed: list[int] = []
        for i, c in enumerate(self.cards):
            if i == except_index:
                continue
            if c.face_up and not c.matched:
                c.turn_down()
                closed.append(i)
        return closed

    def reshuffle_partial(self) -> None:
        # Only unmatched positions take part; ids stay with their positions.
        positions = [i for i, c in enumerate(self.cards) if not c.matched]
        contents = [self.cards[i].content for i in positions]
        self.rng.shuffle(contents)
        for i, content in zip(positions, contents):
            self.cards[i] = Card(id=self.cards[i].id, content=content)
        self.generation += 1

    def reshuffle_full(self) -> None:
        contents = [c.content for c in self.cards]
        fresh = [Card(id=i, content=content) for i, content in enumerate(contents)]
        self.rng.shuffle(fresh)
        self.cards = fresh
        self.generation += 1

    def reveal_all(self) -> None:
        for c in self.cards:
            if not c.matched:
                c.face_up = True

    def content_counts(self) -> Counter[str]:
        return Counter(c.content for c in self.cards)

    def views(self) -> tuple[CardView, ...]:
        return tuple(c.view() for c in self.cards)


def deal(
    pair_count: int,
    content_pool: Sequence[str],
    rng: random.Random | None = None,
    *,
    generation: int = 0,
) -> Board:
    """Deal a shuffled, face-down board of `pair_count` pairs.

    Symbols are taken from the front of `content_pool`. Raises ConfigError
    when the pool cannot supply enough distinct symbols.
    """
    if pair_count < 1:
        raise ConfigError(f"pair_count must be at least 1, got {pair_count}")
    if len(content_pool) < pair_count:
        raise ConfigError(
            f"Not enough content symbols: need {pair_count}, pool has {len(content_pool)}"
        )
    selected = list(content_pool[:pair_count])
    if len(set(selected)) != len(selected):
        raise ConfigError(f"Content symbols must be distinct: {selected}")

    r = rng or random.Random()
    cards: list[Card] = []
    for symbol in selected:
        cards.append(Card(id=len(cards), content=symbol))
        cards.append(Card(id=len(cards), content=symbol))
    r.shuffle(cards)
    return Board(cards=cards, rng=r, generation=generation)
