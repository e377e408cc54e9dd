from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

MIN_PLAYERS = 1
MAX_PLAYERS = 4
BUST_LIMIT = 21
DEALER_STANDS_AT = 17


class Phase(str, Enum):
    AWAITING_PLAYERS = "AWAITING_PLAYERS"
    DEALING_INITIAL = "DEALING_INITIAL"
    ASKING_PLAYERS = "ASKING_PLAYERS"
    DEALER_PLAY = "DEALER_PLAY"
    RESOLVING = "RESOLVING"
    ROUND_COMPLETE = "ROUND_COMPLETE"
    GAME_OVER = "GAME_OVER"


class OutcomeKind(str, Enum):
    ALL = "ALL"
    DEALER = "DEALER"
    DRAW = "DRAW"
    PLAYER = "PLAYER"


@dataclass
class GameConfig:
    max_players: int = 2
    rounds: int = 3
    pace_ms: int = 1_000
    poll_ms: int = 500
    handshake_timeout_s: float = 10.0
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if not MIN_PLAYERS <= self.max_players <= MAX_PLAYERS:
            raise ValueError(f"Minimum Players: {MIN_PLAYERS} Maximum Players: {MAX_PLAYERS}")
        if self.rounds < 1:
            raise ValueError("Minimum Rounds: 1")
        if self.pace_ms < 0:
            raise ValueError("pace_ms must not be negative")
        if self.poll_ms <= 0:
            raise ValueError("poll_ms must be positive")
        if self.handshake_timeout_s <= 0:
            raise ValueError("handshake_timeout_s must be positive")


@dataclass
class Player:
    name: str
    round_score: int = 0
    win_tally: int = 0

    def add(self, points: int) -> None:
        self.round_score += points

    def is_bust(self) -> bool:
        return self.round_score > BUST_LIMIT

    def reset_for_round(self) -> None:
        self.round_score = 0


@dataclass
class RoundOutcome:
    kind: OutcomeKind
    dealer_score: int
    winner: Optional[int] = None
    best_score: Optional[int] = None
