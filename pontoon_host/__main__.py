import argparse
import logging

from pontoon.models import GameConfig

from .server import Coordinator


def main() -> None:
    # CLI doubles as documentation for the table settings.
    parser = argparse.ArgumentParser(description="Pirates Pontoon table host")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8765)
    parser.add_argument("--players", type=int, default=2, help="Seats at the table (1-4)")
    parser.add_argument("--rounds", type=int, default=3)
    parser.add_argument(
        "--pace-ms",
        type=int,
        default=1_000,
        help="Base pause between dealt cards and round steps in milliseconds (0 disables pacing)",
    )
    parser.add_argument(
        "--poll-ms",
        type=int,
        default=500,
        help="Longest wait between re-checks of player readiness and decisions",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed the deck for reproducible games")
    parser.add_argument("--verbose", action="store_true", help="Log every broadcast line")
    args = parser.parse_args()

    if not 0 <= args.port <= 65535:
        parser.error("port must be between 0 and 65535")
    try:
        config = GameConfig(
            max_players=args.players,
            rounds=args.rounds,
            pace_ms=args.pace_ms,
            poll_ms=args.poll_ms,
            seed=args.seed,
        )
    except ValueError as exc:
        parser.error(str(exc))

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    coordinator = Coordinator(config)
    try:
        coordinator.serve(host=args.host, port=args.port)
    except KeyboardInterrupt:
        logging.getLogger("pontoon_host").info("Shutting down")


if __name__ == "__main__":
    main()
