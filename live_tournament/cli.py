"""Operator tool for the live tournament.

Reads and mutates the tournament stored in DynamoDB. Events produced by
``start``/``advance``/``reset`` are logged, not sent to Socket.IO clients.
``simulate`` runs entirely offline.
"""

from __future__ import annotations

import argparse
import json
import logging
import random
from collections.abc import Sequence
from dataclasses import replace

from botocore.exceptions import BotoCoreError, ClientError

from .bracket import create_bracket, render_bracket, simulate_tournament
from .broadcast import RecordingBroadcaster
from .config import build_table, configure_logging, read_settings
from .errors import BracketError
from .models import Participant
from .service import TournamentService
from .storage import TournamentStorage

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tournament-admin", description=__doc__)
    parser.add_argument(
        "--table",
        help="DynamoDB table name (defaults to TOURNAMENT_TABLE_NAME)",
    )
    parser.add_argument(
        "--region",
        help="AWS region (defaults to AWS_REGION)",
    )
    parser.add_argument(
        "--profile",
        help="Optional AWS profile to use",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (defaults to TOURNAMENT_LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the tournament document instead of the rendered bracket",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("show", help="Print the current tournament")

    start = sub.add_parser("start", help="Start a tournament for stored participants")
    start.add_argument("participant_ids", nargs="+")

    advance = sub.add_parser("advance", help="Record the winner of a match")
    advance.add_argument("match_id")
    advance.add_argument("winner_id")

    sub.add_parser("reset", help="Cancel the current tournament")

    simulate = sub.add_parser(
        "simulate", help="Play a bracket offline for the given names"
    )
    simulate.add_argument("participant_ids", nargs="+")
    simulate.add_argument(
        "--seed", type=int, default=None, help="Random seed for match outcomes"
    )
    simulate.add_argument(
        "--snapshots",
        action="store_true",
        help="Print the bracket after every round",
    )
    return parser


def run_simulation(
    participant_ids: Sequence[str], *, seed: int | None, show_snapshots: bool
) -> str:
    rng = random.Random(seed)
    participants = {
        pid: Participant(participant_id=pid, name=pid) for pid in participant_ids
    }
    tournament = create_bracket(participant_ids, participants, max_participants=None)
    final_state, snapshots = simulate_tournament(
        tournament, pick=lambda match: rng.choice(match.participant_ids())
    )
    blocks: list[str] = []
    if show_snapshots:
        for label, snapshot in snapshots[:-1]:
            blocks.append(f"=== {label} ===\n{render_bracket(snapshot)}")
    blocks.append(f"=== Final Bracket ===\n{render_bracket(final_state)}")
    return "\n\n".join(blocks)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = read_settings()
    configure_logging(args.log_level or settings.log_level)

    if args.command == "simulate":
        try:
            print(
                run_simulation(
                    args.participant_ids,
                    seed=args.seed,
                    show_snapshots=args.snapshots,
                )
            )
        except BracketError as exc:
            log.error("%s", exc)
            raise SystemExit(1) from exc
        return 0

    if args.table or args.region:
        settings = replace(
            settings,
            table_name=args.table or settings.table_name,
            region=args.region or settings.region,
        )
    if not settings.table_name:
        raise SystemExit(
            "No DynamoDB table specified (use --table or TOURNAMENT_TABLE_NAME)"
        )

    broadcaster = RecordingBroadcaster()
    service = TournamentService(
        TournamentStorage(build_table(settings, profile=args.profile)),
        broadcaster,
        settings=settings,
    )
    try:
        if args.command == "show":
            tournament = service.current()
        elif args.command == "start":
            tournament = service.start(args.participant_ids)
        elif args.command == "advance":
            tournament = service.advance(args.match_id, args.winner_id)
        else:
            tournament = service.reset()
    except BracketError as exc:
        log.error("%s (%s)", exc, exc.code)
        raise SystemExit(1) from exc
    except (ClientError, BotoCoreError) as exc:  # pragma: no cover - network failure
        log.error("AWS request failed: %s", exc)
        raise SystemExit(2) from exc

    for event, _payload in broadcaster.events:
        log.info("Event not broadcast from CLI: %s", event)
    if tournament is None:
        print("No tournament is running")
    elif args.json:
        print(json.dumps(tournament.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(render_bracket(tournament))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
