from __future__ import annotations

import queue
from typing import Iterable, List, Optional, Tuple

from websockets.exceptions import ConnectionClosedOK

from pontoon.models import GameConfig, Player
from pontoon_host.server import Coordinator
from pontoon_host.session import Session


# Fake connections so we can exercise session threads without opening sockets.
class DummyConnection:
    def __init__(self, lines: Iterable[str] = ()) -> None:
        self.incoming: "queue.Queue[Optional[str]]" = queue.Queue()
        for line in lines:
            self.incoming.put(line)
        self.sent: List[str] = []
        self.closed = False
        self.close_code: Optional[int] = None
        self.close_reason = ""
        self.remote_address = ("127.0.0.1", 50_000)

    def feed(self, line: str) -> None:
        self.incoming.put(line)

    def hang_up(self) -> None:
        self.incoming.put(None)

    def recv(self, timeout: Optional[float] = None) -> str:
        try:
            item = self.incoming.get(timeout=timeout)
        except queue.Empty:
            raise TimeoutError("timed out") from None
        if item is None:
            raise ConnectionClosedOK(None, None)
        return item

    def send(self, message: str) -> None:
        if self.closed:
            raise ConnectionClosedOK(None, None)
        self.sent.append(message)

    def close(self, code: int = 1000, reason: str = "") -> None:
        if self.closed:
            return
        self.closed = True
        self.close_code = code
        self.close_reason = reason
        self.incoming.put(None)


class ScriptedConnection(DummyConnection):
    """Answers every Ask prompt from a script; repeats the last answer when it runs out."""

    def __init__(self, decisions: Iterable[str] = ("Hold",)) -> None:
        super().__init__()
        self.decisions = list(decisions)
        self.session: Optional[Session] = None

    def send(self, message: str) -> None:
        super().send(message)
        if message == "Ask" and self.session is not None and self.decisions:
            decision = self.decisions.pop(0) if len(self.decisions) > 1 else self.decisions[0]
            self.session.parse(decision)


def create_coordinator(
    *,
    players: int = 2,
    rounds: int = 1,
    poll_ms: int = 10,
    seed: Optional[int] = 7,
) -> Coordinator:
    """Instantiate a coordinator with pacing disabled."""
    return Coordinator(GameConfig(max_players=players, rounds=rounds, pace_ms=0, poll_ms=poll_ms, seed=seed))


def seat(
    coordinator: Coordinator,
    name: str,
    *,
    ready: bool = True,
    connection: Optional[DummyConnection] = None,
) -> Tuple[Session, DummyConnection]:
    connection = connection if connection is not None else DummyConnection()
    session = Session(connection, coordinator)  # type: ignore[arg-type]
    session.player = Player(name)
    assert coordinator.admit(session)
    if isinstance(connection, ScriptedConnection):
        connection.session = session
    if ready:
        session.parse("Ready")
    return session, connection


def broadcasts(connection: DummyConnection) -> List[str]:
    return [line[len("Broadcast "):] for line in connection.sent if line.startswith("Broadcast ")]
