"""Line protocol shared by the table host and its clients.

Every message is a single line of space-separated fields led by a token.
Server notices travel wrapped as ``Broadcast <message>``; prompts (``Ask``)
and query replies are sent to one session unwrapped.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple

from .cards import Card


class ClientToken(str, Enum):
    NAME = "Name"
    READY = "Ready"
    DEAL = "Deal"
    HOLD = "Hold"
    NAMES = "Names"
    CONNECTION = "Connection"
    MAX_PLAYERS = "MaxPlayers"
    QUIT = "Quit"


BROADCAST = "Broadcast"
MESSAGE = "Message"
START_ROUND = "StartRound"
END_ROUND = "EndRound"
DEAL_CARD = "DealCard"
END = "End"
ASK = "Ask"
DEALER_SCORE = "DealerScore"
WIN = "Win"
ALL = "All"
HIGH_SCORES = "HighScores"
GAME_OVER = "GameOver"
QUIT = ClientToken.QUIT.value

DEALER_INDEX = -1

# Tokens that must make up the whole line versus tokens matched on the first word.
_EXACT_TOKENS = {ClientToken.READY, ClientToken.CONNECTION, ClientToken.MAX_PLAYERS, ClientToken.QUIT}
_LEADING_TOKENS = {ClientToken.NAME, ClientToken.NAMES, ClientToken.DEAL, ClientToken.HOLD}


@dataclass(frozen=True)
class ClientCommand:
    token: ClientToken
    argument: str = ""


def strip_line(raw: str) -> str:
    return raw.rstrip("\r\n")


def parse_client_line(line: str) -> Optional[ClientCommand]:
    """Classify a client line; returns None for anything unrecognised."""
    line = strip_line(line)
    if not line:
        return None
    head, _, rest = line.partition(" ")
    try:
        token = ClientToken(head)
    except ValueError:
        return None
    if token in _EXACT_TOKENS:
        if rest:
            return None
        return ClientCommand(token)
    if token in _LEADING_TOKENS:
        return ClientCommand(token, rest.strip())
    return None


def parse_name(line: str) -> Optional[str]:
    command = parse_client_line(line)
    if command is None or command.token != ClientToken.NAME:
        return None
    # Names travel inside space-joined lists, so only the first word counts.
    name = command.argument.split(" ", 1)[0]
    return name or None


def broadcast_line(message: str) -> str:
    return f"{BROADCAST} {message}"


def message(text: str) -> str:
    return f"{MESSAGE} {text}"


def deal_card(player_name: str, card: Card) -> str:
    return f"{DEAL_CARD} {player_name} {card.rank.value} {card.suit.value} {card.value}"


def dealer_score(score: int) -> str:
    return f"{DEALER_SCORE} {score}"


def win_all() -> str:
    return f"{WIN} {ALL}"


def win_index(index: int) -> str:
    return f"{WIN} {index}"


def format_scores(entries: Iterable[Tuple[str, int]]) -> str:
    return " ".join(f"{name} {score}" for name, score in entries)


def high_scores(entries: Iterable[Tuple[str, int]]) -> str:
    report = format_scores(entries)
    return f"{HIGH_SCORES} {report}" if report else HIGH_SCORES
