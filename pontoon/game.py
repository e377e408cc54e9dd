from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from .cards import Card, Deck
from .models import (
    BUST_LIMIT,
    DEALER_STANDS_AT,
    GameConfig,
    OutcomeKind,
    Phase,
    Player,
    RoundOutcome,
)

# RoundEngine keeps all round state in memory. No networking lives here, only
# dealing, the dealer's house rule, winner resolution and the tallies.


class Dealer:
    def __init__(self) -> None:
        self.score = 0

    def deal_to(self, deck: Deck, player: Player) -> Card:
        card = deck.draw()
        player.add(card.value)
        return card

    def deal_self(self, deck: Deck) -> int:
        # House rule: keep hitting through 16, even if that busts the dealer.
        while self.score < DEALER_STANDS_AT:
            self.score += deck.draw().value
        return self.score

    def reset(self) -> None:
        self.score = 0


class RoundEngine:
    """Pirates Pontoon round state for a single table."""

    def __init__(self, config: GameConfig) -> None:
        self.config = config
        self.deck = Deck(config.seed)
        self.dealer = Dealer()
        self.max_rounds = config.rounds
        self.current_round = 0
        self.high_scores: List[int] = [0] * config.max_players
        self.phase = Phase.AWAITING_PLAYERS

    # Round lifecycle -------------------------------------------------

    def has_more_rounds(self) -> bool:
        return self.current_round < self.max_rounds

    def is_game_over(self) -> bool:
        return self.phase == Phase.GAME_OVER

    def begin_round(self) -> None:
        if not self.has_more_rounds():
            raise RuntimeError("No rounds left to play")
        self.phase = Phase.DEALING_INITIAL

    def begin_asking(self) -> None:
        self.phase = Phase.ASKING_PLAYERS

    def deal_to(self, player: Player) -> Card:
        return self.dealer.deal_to(self.deck, player)

    def play_dealer(self) -> int:
        self.phase = Phase.DEALER_PLAY
        return self.dealer.deal_self(self.deck)

    def resolve(self, players: Sequence[Optional[Player]], active: Sequence[bool]) -> RoundOutcome:
        """Decide the round and update tallies; the dealer wins ties."""
        self.phase = Phase.RESOLVING
        dealer_score = self.dealer.score
        contenders = [
            (idx, player)
            for idx, player in enumerate(players)
            if player is not None and active[idx]
        ]

        if dealer_score > BUST_LIMIT:
            for idx, player in contenders:
                self._award(idx, player)
            outcome = RoundOutcome(kind=OutcomeKind.ALL, dealer_score=dealer_score)
        else:
            beating = [
                (idx, player.round_score)
                for idx, player in contenders
                if dealer_score < player.round_score <= BUST_LIMIT
            ]
            if not beating:
                outcome = RoundOutcome(kind=OutcomeKind.DEALER, dealer_score=dealer_score)
            else:
                best = max(score for _, score in beating)
                leaders = [idx for idx, score in beating if score == best]
                if len(leaders) > 1:
                    outcome = RoundOutcome(kind=OutcomeKind.DRAW, dealer_score=dealer_score, best_score=best)
                else:
                    winner = leaders[0]
                    self._award(winner, players[winner])
                    outcome = RoundOutcome(
                        kind=OutcomeKind.PLAYER,
                        dealer_score=dealer_score,
                        winner=winner,
                        best_score=best,
                    )

        self._reset_scores(players)
        return outcome

    def abandon_round(self, players: Sequence[Optional[Player]]) -> None:
        self._reset_scores(players)

    def finish_round(self) -> None:
        self.deck.reset()
        self.dealer.reset()
        self.current_round += 1
        self.phase = Phase.ROUND_COMPLETE if self.has_more_rounds() else Phase.GAME_OVER

    # Reporting -------------------------------------------------------

    def high_score_entries(
        self, players: Sequence[Optional[Player]], active: Sequence[bool]
    ) -> List[Tuple[str, int]]:
        return [
            (player.name, self.high_scores[idx])
            for idx, player in enumerate(players)
            if player is not None and active[idx]
        ]

    def _award(self, idx: int, player: Optional[Player]) -> None:
        self.high_scores[idx] += 1
        if player is not None:
            player.win_tally += 1

    def _reset_scores(self, players: Sequence[Optional[Player]]) -> None:
        for player in players:
            if player is not None:
                player.reset_for_round()
