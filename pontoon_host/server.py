from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import List, Optional, Tuple

from websockets.sync.server import Server, ServerConnection, serve

from pontoon import protocol
from pontoon.cards import Card, DeckExhausted
from pontoon.game import RoundEngine
from pontoon.models import GameConfig, OutcomeKind, Player, RoundOutcome

from .session import Session

LOGGER = logging.getLogger("pontoon_host")

# Coordinator glues the round engine to connected sessions. Every network and
# pacing concern lives here; the RoundEngine stays pure.

CLOSE_BAD_HANDSHAKE = 4400
CLOSE_TABLE_FULL = 4409
CLOSE_GAME_OVER = 4410


class AskResult(str, Enum):
    DEAL = "DEAL"
    HOLD = "HOLD"
    BUST = "BUST"
    DEPARTED = "DEPARTED"


class Coordinator:
    def __init__(self, config: GameConfig) -> None:
        self.config = config
        self.engine = RoundEngine(config)
        # Fixed-capacity registry; a slot is never emptied once claimed.
        self.sessions: List[Optional[Session]] = [None] * config.max_players
        self.changed = threading.Condition()
        self.broadcast_lock = threading.RLock()
        self._server: Optional[Server] = None
        self._accept_thread: Optional[threading.Thread] = None

    @property
    def max_players(self) -> int:
        return self.config.max_players

    # Transport -------------------------------------------------------

    def listen(self, host: str = "127.0.0.1", port: int = 8765) -> int:
        """Start accepting connections on a background thread; returns the bound port."""
        self._server = serve(self.handle_connection, host, port)
        self._accept_thread = threading.Thread(
            target=self._server.serve_forever, name="accept-loop", daemon=True
        )
        self._accept_thread.start()
        bound_port = self._server.socket.getsockname()[1]
        LOGGER.info("Table host listening on %s:%s", host, bound_port)
        return bound_port

    def serve(self, host: str = "127.0.0.1", port: int = 8765) -> None:
        self.listen(host, port)
        try:
            self.run_game()
        finally:
            self.stop()

    def stop(self) -> None:
        for session in self.sessions:
            if session is not None:
                session.close()
        if self._server is not None:
            self._server.shutdown()
            self._server = None

    def handle_connection(self, connection: ServerConnection) -> None:
        # Runs on the transport's per-connection thread for the whole session.
        session = Session(connection, self)
        if self.is_game_over():
            session.close(code=CLOSE_GAME_OVER, reason="Game over")
            return
        if not session.handshake():
            LOGGER.warning("Rejected %s: expected a Name handshake", connection.remote_address)
            session.close(code=CLOSE_BAD_HANDSHAKE, reason="Expected Name <n>")
            return
        if not self.admit(session):
            LOGGER.warning("Rejected %s (%s): table is full", session.name, connection.remote_address)
            session.close(code=CLOSE_TABLE_FULL, reason="Table is full")
            return
        session.run()

    # Registry --------------------------------------------------------

    def admit(self, session: Session) -> bool:
        with self.changed:
            for idx, existing in enumerate(self.sessions):
                if existing is None:
                    session.slot = idx
                    self.sessions[idx] = session
                    self.changed.notify_all()
                    LOGGER.info("Slot %s claimed by %s", idx, session.name)
                    return True
        return False

    def connected_count(self) -> int:
        with self.changed:
            return sum(1 for session in self.sessions if session is not None)

    def player_names(self) -> str:
        with self.changed:
            return " ".join(session.name for session in self.sessions if session is not None)

    def high_score_report(self) -> str:
        return protocol.format_scores(self._score_entries())

    def is_game_over(self) -> bool:
        return self.engine.is_game_over()

    def broadcast(self, message: str) -> None:
        line = protocol.broadcast_line(message)
        with self.broadcast_lock:
            LOGGER.debug(line)
            for session in self.sessions:
                if session is None or not session.is_ready():
                    continue
                session.send(line)

    # Driver ----------------------------------------------------------

    def run_game(self) -> None:
        self.wait_for_players()
        self._pause(1.0)

        first_round = True
        while self.engine.has_more_rounds():
            self.play_round(welcome=first_round)
            first_round = False
            self._pause(2.0)

        LOGGER.info("Game over; tallies: %s", self.high_score_report())
        self.broadcast(protocol.GAME_OVER)
        self.broadcast(protocol.QUIT)

    def wait_for_players(self) -> None:
        """Readiness barrier: every slot claimed and every claimed slot ready."""
        with self.changed:
            while not self._all_ready_locked():
                LOGGER.debug(
                    "Waiting for the clients before starting game (%s/%s seated)",
                    sum(1 for session in self.sessions if session is not None),
                    self.max_players,
                )
                self.changed.wait(timeout=self._poll_seconds())
        LOGGER.info("All %s players ready", self.max_players)

    def play_round(self, welcome: bool = False) -> Optional[RoundOutcome]:
        self.engine.begin_round()
        round_no = self.engine.current_round + 1
        LOGGER.info("Round %s/%s starting", round_no, self.engine.max_rounds)

        self.broadcast(protocol.START_ROUND)
        self._pause(1.0)
        if welcome:
            self.broadcast(protocol.message("Welcome to Pirates Pontoon"))

        outcome: Optional[RoundOutcome] = None
        try:
            self.deal_initial()
            self.ask_players()
            self.engine.play_dealer()
            self._pause(1.0)
            outcome = self.resolve_round()
        except DeckExhausted:
            LOGGER.error("Deck exhausted during round %s; voiding the round", round_no)
            self.engine.abandon_round(self._players())
            self.broadcast(protocol.message("The deck ran out of cards; this round is void"))

        self.engine.finish_round()
        self._pause(1.0)
        self.broadcast(protocol.END_ROUND)
        self._pause(1.0)
        self.broadcast(protocol.high_scores(self._score_entries()))
        return outcome

    def deal_initial(self) -> None:
        for session in self.sessions:
            if session is None or not session.is_ready():
                continue
            player = session.player
            first = self.engine.deal_to(player)
            self.broadcast(protocol.deal_card(player.name, first))
            self._pause(1.0)
            second = self.engine.deal_to(player)
            self.broadcast(protocol.deal_card(player.name, second))
            self.broadcast(protocol.END)
            self.broadcast(
                protocol.message(
                    f"{player.name} was dealt two cards: A {first.label} and a {second.label}"
                )
            )
            self._pause(0.5)

    def ask_players(self) -> None:
        self.engine.begin_asking()
        for session in self.sessions:
            if session is None or not session.is_ready():
                continue
            self.ask_loop(session)
            self._pause(1.0)

    def ask_loop(self, session: Session) -> AskResult:
        """Prompt one player until they hold, bust or leave."""
        player = session.player
        announce = True
        while True:
            decision = self.ask(session, announce=announce)
            announce = False
            if decision != AskResult.DEAL:
                return decision

            card = self.engine.deal_to(player)
            self._announce_card(player, card)
            if player.is_bust():
                self.broadcast(protocol.message(f"{player.name} was busted!"))
                LOGGER.info("%s busted with %s", player.name, player.round_score)
                return AskResult.BUST

    def ask(self, session: Session, announce: bool = True) -> AskResult:
        name = session.name
        # Intent sent before the prompt is stale; drop it before asking.
        session.clear_intent()
        session.send(protocol.ASK)
        if announce:
            self.broadcast(f"{protocol.ASK} {name} was asked by the dealer whether to Deal or Hold")

        with self.changed:
            while session.is_ready() and not (session.is_dealing() or session.is_holding()):
                self.changed.wait(timeout=self._poll_seconds())
            if not session.is_ready():
                result = AskResult.DEPARTED
            elif session.is_dealing():
                result = AskResult.DEAL
            else:
                result = AskResult.HOLD
            session.clear_intent()

        if result == AskResult.DEPARTED:
            LOGGER.info("%s left while being asked; treating as hold", name)
        elif result == AskResult.DEAL:
            self.broadcast(f"{protocol.ASK} {name} chose to Deal")
        else:
            self.broadcast(f"{protocol.ASK} {name} chose to Hold")
        return result

    def resolve_round(self) -> RoundOutcome:
        dealer_score = self.engine.dealer.score
        self.broadcast(protocol.dealer_score(dealer_score))
        self.broadcast(protocol.message("The dealer has been dealt his cards"))
        self._pause(1.0)

        outcome = self.engine.resolve(self._players(), self._active())
        if outcome.kind == OutcomeKind.ALL:
            self.broadcast(
                protocol.message(
                    f"The dealer had a score of {dealer_score} and lost this round. Everyone wins"
                )
            )
            self.broadcast(protocol.win_all())
        elif outcome.kind == OutcomeKind.DEALER:
            self.broadcast(protocol.message("The dealer wins this round"))
            self.broadcast(protocol.win_index(protocol.DEALER_INDEX))
        elif outcome.kind == OutcomeKind.DRAW:
            self.broadcast(protocol.message("Draw! Nobody wins this round"))
        else:
            winner = self.sessions[outcome.winner]
            self.broadcast(protocol.message(f"{winner.name} wins this round"))
            self.broadcast(protocol.win_index(outcome.winner))
        LOGGER.info(
            "Round resolved: outcome=%s dealer=%s winner=%s",
            outcome.kind.value,
            dealer_score,
            outcome.winner,
        )
        return outcome

    # Helpers ---------------------------------------------------------

    def _announce_card(self, player: Player, card: Card) -> None:
        self.broadcast(protocol.deal_card(player.name, card))
        self.broadcast(protocol.END)
        self.broadcast(protocol.message(f"{player.name} was dealt a {card.label}"))

    def _all_ready_locked(self) -> bool:
        return all(session is not None and session.is_ready() for session in self.sessions)

    def _players(self) -> List[Optional[Player]]:
        return [session.player if session else None for session in self.sessions]

    def _active(self) -> List[bool]:
        return [bool(session and session.is_ready()) for session in self.sessions]

    def _score_entries(self) -> List[Tuple[str, int]]:
        return self.engine.high_score_entries(self._players(), self._active())

    def _poll_seconds(self) -> float:
        return self.config.poll_ms / 1000

    def _pause(self, beats: float) -> None:
        if self.config.pace_ms:
            time.sleep(self.config.pace_ms * beats / 1000)
