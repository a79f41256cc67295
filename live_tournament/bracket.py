from __future__ import annotations

import uuid
from collections.abc import Callable, Mapping, Sequence

from .errors import (
    IllegalStateTransition,
    InvalidParticipantCount,
    InvalidWinner,
    MatchNotFound,
    TournamentNotActive,
)
from .models import (
    Match,
    MatchSlot,
    Participant,
    Round,
    Tournament,
    utc_now_iso,
)

DEFAULT_MAX_PARTICIPANTS = 16

MatchIdFactory = Callable[[int, int], str]
WinnerPicker = Callable[[Match], str]


def is_power_of_two(value: int) -> bool:
    return value > 0 and value & (value - 1) == 0


def round_name(round_number: int, total_rounds: int) -> str:
    remaining = total_rounds - round_number + 1
    if remaining == 1:
        return "Final"
    if remaining == 2:
        return "Semifinals"
    if remaining == 3:
        return "Quarterfinals"
    return f"Round of {2**remaining}"


def _new_match_id(round_number: int, match_number: int) -> str:
    return f"R{round_number}M{match_number}-{uuid.uuid4().hex[:8]}"


def validate_participant_ids(
    participant_ids: Sequence[str],
    *,
    max_participants: int | None = DEFAULT_MAX_PARTICIPANTS,
) -> list[str]:
    """Return the ids as strings, rejecting shapes that cannot form a bracket."""
    ids = [str(pid) for pid in participant_ids]
    count = len(ids)
    if count < 2:
        raise InvalidParticipantCount(
            "At least two participants are required to create a bracket"
        )
    if not is_power_of_two(count):
        raise InvalidParticipantCount(
            f"Participant count must be a power of two, got {count}"
        )
    if max_participants is not None and count > max_participants:
        raise InvalidParticipantCount(
            f"At most {max_participants} participants are supported, got {count}"
        )
    if len(set(ids)) != count:
        raise InvalidParticipantCount("Participant ids must be unique")
    return ids


def _seat(
    slot: MatchSlot, participant_id: str, lookup: Mapping[str, Participant]
) -> None:
    participant = lookup.get(participant_id)
    if participant is None:
        slot.seat(participant_id, participant_id, None)
        return
    slot.seat(participant_id, participant.display_name, participant.avatar_token)


def create_bracket(
    participant_ids: Sequence[str],
    participants: Mapping[str, Participant] | None = None,
    *,
    max_participants: int | None = DEFAULT_MAX_PARTICIPANTS,
    tournament_id: str | None = None,
    id_factory: MatchIdFactory | None = None,
) -> Tournament:
    ids = validate_participant_ids(participant_ids, max_participants=max_participants)
    lookup = participants or {}
    make_id = id_factory or _new_match_id

    total_rounds = len(ids).bit_length() - 1
    rounds: list[Round] = []
    for round_number in range(1, total_rounds + 1):
        match_count = len(ids) >> round_number
        matches = [
            Match(
                match_id=make_id(round_number, match_number),
                match_number=match_number,
                round_number=round_number,
            )
            for match_number in range(1, match_count + 1)
        ]
        rounds.append(Round(round_number=round_number, matches=matches))

    for current, following in zip(rounds, rounds[1:]):
        for index, match in enumerate(current.matches):
            match.next_match_id = following.matches[index // 2].match_id

    for index, match in enumerate(rounds[0].matches):
        _seat(match.slot_a, ids[index * 2], lookup)
        _seat(match.slot_b, ids[index * 2 + 1], lookup)

    now = utc_now_iso()
    return Tournament(
        tournament_id=tournament_id or uuid.uuid4().hex,
        status="active",
        rounds=rounds,
        participant_ids=ids,
        created_at=now,
        updated_at=now,
    )


def _require_match(tournament: Tournament, match_id: str) -> Match:
    match = tournament.find_match(match_id)
    if match is None:
        raise MatchNotFound(f"Match {match_id} not found")
    return match


def record_winner(tournament: Tournament, match_id: str, winner_id: str) -> Tournament:
    """Record ``winner_id`` as the winner of ``match_id`` and advance them.

    All preconditions are checked before anything is mutated. Recording the
    same winner twice is a no-op; a different winner for a decided match is
    rejected.
    """
    if tournament.status in ("cancelled", "not_started"):
        raise TournamentNotActive(f"Tournament is {tournament.status}")
    match = _require_match(tournament, match_id)
    if match.status == "pending":
        raise IllegalStateTransition(
            f"Match {match_id} is still waiting for both participants"
        )
    winner_slot = match.slot_for(winner_id)
    if winner_slot is None:
        raise InvalidWinner(
            f"{winner_id} is not one of the participants of match {match_id}"
        )
    if match.winner_id == winner_id:
        return tournament
    if not tournament.is_active:
        raise TournamentNotActive(f"Tournament is {tournament.status}")
    if match.winner_id is not None:
        raise IllegalStateTransition(
            f"Match {match_id} already has a different winner recorded"
        )
    target: MatchSlot | None = None
    if match.next_match_id is not None:
        next_match = _require_match(tournament, match.next_match_id)
        target = next_match.slot_a if match.match_number % 2 == 1 else next_match.slot_b
        if target.filled:
            raise IllegalStateTransition(
                f"Match {next_match.match_id} already has that slot filled"
            )

    match.winner_id = winner_id
    match.questions_open = False
    if target is None:
        tournament.champion = winner_slot.as_participant()
        tournament.status = "completed"
    else:
        target.adopt_from(winner_slot)
    tournament.touch()
    return tournament


def open_question_phase(tournament: Tournament, match_id: str) -> Match:
    if not tournament.is_active:
        raise TournamentNotActive(f"Tournament is {tournament.status}")
    match = _require_match(tournament, match_id)
    status = match.status
    if status != "in_progress":
        raise IllegalStateTransition(
            f"Match {match_id} cannot start questions while {status}"
        )
    match.questions_open = True
    tournament.touch()
    return match


def cancel(tournament: Tournament) -> Tournament:
    if tournament.status == "cancelled":
        return tournament
    if tournament.status == "completed":
        raise TournamentNotActive("A completed tournament cannot be cancelled")
    tournament.status = "cancelled"
    tournament.touch()
    return tournament


def render_bracket(tournament: Tournament, *, shrink_completed: bool = False) -> str:
    start_index = 0
    if shrink_completed and tournament.rounds:
        last_index = len(tournament.rounds) - 1
        for idx, round_ in enumerate(tournament.rounds):
            if not round_.is_complete():
                start_index = idx
                break
        else:
            start_index = last_index

    total_rounds = len(tournament.rounds)
    lines: list[str] = []
    for round_ in tournament.rounds[start_index:]:
        lines.append(round_name(round_.round_number, total_rounds))
        for match in round_.matches:
            lines.append(
                f"  [{match.match_number}] {match.slot_a.display()} vs "
                f"{match.slot_b.display()} ({match.status})"
            )
            winner = match.winner_slot()
            if winner is not None:
                lines.append(f"    -> Winner: {winner.display()}")
            else:
                lines.append("    -> Winner: TBD")
        lines.append("")
    if lines and not lines[-1]:
        lines.pop()
    if tournament.champion is not None:
        lines.append(f"Champion: {tournament.champion.display_name}")
    if tournament.status == "cancelled":
        lines.append("Status: cancelled")
    return "\n".join(line.rstrip() for line in lines)


def _first_slot(match: Match) -> str:
    return str(match.slot_a.participant_id)


def simulate_tournament(
    tournament: Tournament, pick: WinnerPicker | None = None
) -> tuple[Tournament, list[tuple[str, Tournament]]]:
    """Play every undecided match on a copy, one round at a time."""
    choose = pick or _first_slot
    working = tournament.clone()
    snapshots: list[tuple[str, Tournament]] = [("Initial Bracket", working.clone())]
    total_rounds = len(working.rounds)
    for round_ in working.rounds:
        for match in round_.matches:
            if match.status in ("in_progress", "questions_active"):
                record_winner(working, match.match_id, choose(match))
        snapshots.append(
            (f"After {round_name(round_.round_number, total_rounds)}", working.clone())
        )
    return working, snapshots


__all__ = [
    "DEFAULT_MAX_PARTICIPANTS",
    "is_power_of_two",
    "round_name",
    "validate_participant_ids",
    "create_bracket",
    "record_winner",
    "open_question_phase",
    "cancel",
    "render_bracket",
    "simulate_tournament",
]
