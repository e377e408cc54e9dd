"""Pirates Pontoon engine primitives reused by the table host and clients."""

from .cards import RANKS, SUITS, Card, Deck, DeckExhausted, Rank, Suit
from .game import Dealer, RoundEngine
from .models import GameConfig, OutcomeKind, Phase, Player, RoundOutcome

__all__ = [
    "Card",
    "Deck",
    "DeckExhausted",
    "Rank",
    "Suit",
    "RANKS",
    "SUITS",
    "Dealer",
    "RoundEngine",
    "GameConfig",
    "OutcomeKind",
    "Phase",
    "Player",
    "RoundOutcome",
]
