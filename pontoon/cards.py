from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class Suit(str, Enum):
    CLUBS = "Clubs"
    DIAMONDS = "Diamonds"
    HEARTS = "Hearts"
    SPADES = "Spades"


class Rank(str, Enum):
    ACE = "Ace"
    TWO = "Two"
    THREE = "Three"
    FOUR = "Four"
    FIVE = "Five"
    SIX = "Six"
    SEVEN = "Seven"
    EIGHT = "Eight"
    NINE = "Nine"
    TEN = "Ten"
    JACK = "Jack"
    QUEEN = "Queen"
    KING = "King"


SUITS = list(Suit)
RANKS = list(Rank)
DECK_SIZE = len(SUITS) * len(RANKS)


class DeckExhausted(RuntimeError):
    """Raised when a draw is attempted on an empty deck."""


@dataclass(frozen=True)
class Card:
    suit: Suit
    rank: Rank

    @property
    def value(self) -> int:
        # Court cards are capped at ten; the ace counts as one.
        return min(RANKS.index(self.rank) + 1, 10)

    @property
    def label(self) -> str:
        return f"{self.rank.value} of {self.suit.value}"


def build_cards() -> List[Card]:
    return [Card(suit, rank) for suit in SUITS for rank in RANKS]


class Deck:
    """A pool of cards drawn without replacement until the next reset."""

    def __init__(self, seed: Optional[int] = None) -> None:
        self._rng = random.Random(seed)
        self._cards: List[Card] = build_cards()

    def __len__(self) -> int:
        return len(self._cards)

    @property
    def size(self) -> int:
        return len(self._cards)

    def draw(self) -> Card:
        if not self._cards:
            raise DeckExhausted("No cards left in deck")
        index = self._rng.randrange(len(self._cards))
        return self._cards.pop(index)

    def reset(self) -> None:
        self._cards = build_cards()
