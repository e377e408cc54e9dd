from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Optional

import websockets
from websockets.sync.server import ServerConnection

from pontoon import protocol
from pontoon.models import Player
from pontoon.protocol import ClientToken

if TYPE_CHECKING:
    from .server import Coordinator

LOGGER = logging.getLogger("pontoon_host")

# A Session is the only writer of its three flags. Every write happens under the
# coordinator's condition so the driver thread wakes as soon as a flag flips.


class Session:
    def __init__(self, connection: ServerConnection, coordinator: Coordinator) -> None:
        self.connection = connection
        self.coordinator = coordinator
        self.slot: Optional[int] = None
        self.player: Optional[Player] = None
        self.ready = False
        self.wants_deal = False
        self.wants_hold = False
        self._send_lock = threading.Lock()

    @property
    def name(self) -> str:
        return self.player.name if self.player else "<anonymous>"

    # Flags -----------------------------------------------------------

    def is_ready(self) -> bool:
        return self.ready

    def is_dealing(self) -> bool:
        return self.wants_deal

    def is_holding(self) -> bool:
        return self.wants_hold

    def clear_intent(self) -> None:
        with self.coordinator.changed:
            self.wants_deal = False
            self.wants_hold = False

    def _set_flags(self, **flags: bool) -> None:
        with self.coordinator.changed:
            for flag, value in flags.items():
                setattr(self, flag, value)
            self.coordinator.changed.notify_all()

    # Line I/O --------------------------------------------------------

    def send(self, line: str) -> bool:
        with self._send_lock:
            try:
                self.connection.send(line)
            except (websockets.ConnectionClosed, OSError) as exc:
                LOGGER.debug("Dropped line for %s (%s): %s", self.name, exc, line)
                return False
        return True

    def receive(self, timeout: Optional[float] = None) -> Optional[str]:
        try:
            raw = self.connection.recv(timeout=timeout)
        except (websockets.ConnectionClosed, TimeoutError, OSError):
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        return protocol.strip_line(raw)

    def close(self, code: int = 1000, reason: str = "") -> None:
        try:
            self.connection.close(code=code, reason=reason)
        except (websockets.ConnectionClosed, OSError):
            pass

    # Protocol --------------------------------------------------------

    def handshake(self) -> bool:
        line = self.receive(timeout=self.coordinator.config.handshake_timeout_s)
        name = protocol.parse_name(line) if line is not None else None
        if name is None:
            return False
        self.player = Player(name)
        return True

    def parse(self, line: str) -> Optional[str]:
        """Apply one client line; returns the reply for queries, else None."""
        command = protocol.parse_client_line(line)
        if command is None:
            return None

        token = command.token
        if token == ClientToken.READY:
            self._set_flags(ready=True)
        elif token == ClientToken.DEAL:
            self._set_flags(wants_deal=True, wants_hold=False)
        elif token == ClientToken.HOLD:
            self._set_flags(wants_hold=True, wants_deal=False)
        elif token == ClientToken.NAMES:
            return self.coordinator.player_names()
        elif token == ClientToken.CONNECTION:
            return str(self.coordinator.connected_count())
        elif token == ClientToken.MAX_PLAYERS:
            return str(self.coordinator.max_players)
        # Name after the handshake, and Quit outside the read loop, are no-ops.
        return None

    def run(self) -> None:
        try:
            while True:
                line = self.receive()
                if line is None or line == protocol.QUIT:
                    break
                reply = self.parse(line)
                if reply is not None:
                    self.send(reply)
        finally:
            self.depart()

    def depart(self) -> None:
        self._set_flags(ready=False)
        LOGGER.info("Slot %s (%s) left the table", self.slot, self.name)
        if not self.coordinator.is_game_over():
            self.coordinator.broadcast(protocol.message(f"{self.name} has left the game."))
        self.close()
