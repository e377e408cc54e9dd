#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Optional

import websockets
from websockets.asyncio.client import ClientConnection, connect

logging.basicConfig(level=logging.INFO)

# ManualClient speaks the table protocol with terminal prompts, or on its own
# with --auto (deal below 17, hold otherwise).

AUTO_HOLD_AT = 17


@dataclass
class TableView:
    round_no: int = 0
    score: int = 0
    dealer_score: Optional[int] = None
    tallies: Dict[str, int] = field(default_factory=dict)


def auto_decision(score: int) -> str:
    return "Deal" if score < AUTO_HOLD_AT else "Hold"


def parse_tallies(fields: list[str]) -> Dict[str, int]:
    tallies: Dict[str, int] = {}
    for name, score in zip(fields[0::2], fields[1::2]):
        try:
            tallies[name] = int(score)
        except ValueError:
            continue
    return tallies


class ManualClient:
    def __init__(self, name: str, url: str, auto: bool = False) -> None:
        self.name = name
        self.url = url
        self.auto = auto
        self.websocket: Optional[ClientConnection] = None
        self.view = TableView()
        self.recent: deque[str] = deque(maxlen=6)

    async def run(self) -> None:
        async with connect(self.url) as ws:
            self.websocket = ws
            await self._send(f"Name {self.name}")
            await self._send("Ready")
            await self._loop()

    async def _loop(self) -> None:
        assert self.websocket is not None
        while True:
            try:
                line = await self.websocket.recv()
            except websockets.ConnectionClosed:
                print("Connection closed by host")
                break
            if line == "Ask":
                await self._handle_ask()
                continue
            if not line.startswith("Broadcast "):
                print(f"<<< {line}")
                continue
            if not self.handle_broadcast(line[len("Broadcast "):]):
                break

    def handle_broadcast(self, body: str) -> bool:
        """Update the local view; returns False once the host says Quit."""
        token, _, rest = body.partition(" ")
        fields = rest.split(" ") if rest else []
        view = self.view
        if token == "StartRound":
            view.round_no += 1
            view.score = 0
            view.dealer_score = None
            self.recent.clear()
            print(f"\n>>> ROUND {view.round_no}")
        elif token == "DealCard" and len(fields) == 4:
            player, rank, suit, value = fields
            if player == self.name:
                view.score += int(value)
            print(f"{player} drew {rank} of {suit} ({value})")
        elif token == "DealerScore" and fields:
            view.dealer_score = int(fields[0])
            print(f"Dealer finished on {view.dealer_score}")
        elif token == "Win" and fields:
            if fields[0] == "All":
                print("Dealer bust: everyone wins")
            elif fields[0] == "-1":
                print("Dealer wins")
            else:
                print(f"Seat {fields[0]} wins")
        elif token == "HighScores":
            view.tallies = parse_tallies(fields)
            print("Tallies: " + ", ".join(f"{name}={score}" for name, score in view.tallies.items()))
        elif token in ("Message", "Ask"):
            self.recent.append(rest)
            print(rest)
        elif token == "GameOver":
            print("Game over.")
        elif token == "Quit":
            return False
        return True

    async def _handle_ask(self) -> None:
        if self.auto:
            choice = auto_decision(self.view.score)
            print(f"Score {self.view.score}: {choice}")
        else:
            choice = self._prompt_decision()
        await self._send(choice)

    def print_recent(self) -> None:
        if self.recent:
            print("Recent:")
            for entry in reversed(self.recent):
                print(f"  {entry}")
        else:
            print("Recent: (none)")

    def _prompt_decision(self) -> str:
        self.print_recent()
        while True:
            raw = input(f"Score {self.view.score}. Deal or Hold? [d/h]: ").strip().lower()
            if raw in ("d", "deal"):
                return "Deal"
            if raw in ("h", "hold"):
                return "Hold"
            print("Type d to take another card or h to hold.")

    async def _send(self, line: str) -> None:
        assert self.websocket is not None
        await self.websocket.send(line)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Pirates Pontoon manual client")
    parser.add_argument("--url", default="ws://127.0.0.1:8765")
    parser.add_argument("--name", required=True)
    parser.add_argument("--auto", action="store_true", help="Play automatically: deal below 17")
    return parser.parse_args(argv)


def main(argv: list[str]) -> None:
    args = parse_args(argv)
    if " " in args.name:
        print("Names may not contain spaces")
        sys.exit(2)
    client = ManualClient(name=args.name, url=args.url, auto=args.auto)
    try:
        asyncio.run(client.run())
    except KeyboardInterrupt:
        print("\nSession closed")


if __name__ == "__main__":
    main(sys.argv[1:])
