"""Admin-facing orchestration: load, run the engine, persist, then broadcast."""

from __future__ import annotations

import logging
import random
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from . import broadcast
from .aliases import assign_tournament_aliases
from .bracket import (
    cancel,
    create_bracket,
    open_question_phase,
    record_winner,
    validate_participant_ids,
)
from .broadcast import Broadcaster
from .config import TournamentSettings
from .errors import (
    IllegalStateTransition,
    InvalidAnswer,
    MatchNotFound,
    NoActiveTournament,
    RoundNotFound,
    TournamentNotActive,
    UnknownParticipant,
)
from .models import Match, MatchAnswers, Round, Tournament, utc_now_iso
from .questions import (
    MatchScore,
    decide_winner,
    grade_answers,
    validate_answers,
    validate_round_questions,
)
from .storage import TournamentStorage

log = logging.getLogger("live-tournament")


def _all_submitted(match: Match, submissions: Mapping[str, MatchAnswers]) -> bool:
    return all(pid in submissions for pid in match.participant_ids())


@dataclass(slots=True)
class AnswerOutcome:
    waiting_for_opponent: bool
    winner_id: str | None = None
    loser_id: str | None = None
    scores: list[MatchScore] = field(default_factory=list)
    tournament_over: bool = False


class TournamentService:
    """Single writer for the live tournament.

    Writes inside one process are serialised by a lock; writes from other
    processes are caught by the versioned conditional put in storage.
    """

    def __init__(
        self,
        storage: TournamentStorage,
        broadcaster: Broadcaster,
        *,
        settings: TournamentSettings | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._storage = storage
        self._broadcaster = broadcaster
        self._settings = settings or TournamentSettings(table_name=None)
        self._rng = rng
        self._lock = threading.Lock()

    # ----- Queries -----
    def current(self) -> Tournament | None:
        """Return the tournament the active pointer names, if any."""
        return self._storage.get_active_tournament()

    # ----- Bracket lifecycle -----
    def start(self, participant_ids: Sequence[str]) -> Tournament:
        ids = validate_participant_ids(
            participant_ids, max_participants=self._settings.max_participants
        )
        with self._lock:
            found = self._storage.get_participants(ids)
            missing = [pid for pid in ids if pid not in found]
            if missing:
                raise UnknownParticipant(
                    f"Unknown participants: {', '.join(missing)}"
                )
            aliased = assign_tournament_aliases([found[pid] for pid in ids], self._rng)
            tournament = create_bracket(
                ids,
                {participant.participant_id: participant for participant in aliased},
                max_participants=self._settings.max_participants,
            )
            previous = self._storage.get_active_tournament()
            if previous is not None and previous.is_active:
                loaded_version = previous.version
                cancel(previous)
                self._storage.save_tournament(previous, expected_version=loaded_version)
                log.info(
                    "Replaced active tournament %s with %s",
                    previous.tournament_id,
                    tournament.tournament_id,
                )
            self._storage.save_tournament(tournament)
            for participant in aliased:
                self._storage.update_tournament_alias(participant)
            self._storage.set_active(tournament.tournament_id)
        log.info(
            "Started tournament %s with %s participants",
            tournament.tournament_id,
            len(ids),
        )
        self._publish(
            broadcast.TOURNAMENT_STARTED,
            {
                "tournamentId": tournament.tournament_id,
                "tournament": tournament.to_dict(),
            },
        )
        return tournament

    def advance(self, match_id: str, winner_id: str) -> Tournament:
        with self._lock:
            tournament = self._require_current()
            loaded_version = tournament.version
            record_winner(tournament, match_id, winner_id)
            if tournament.version == loaded_version:
                log.debug("Winner for match %s already recorded", match_id)
                return tournament
            self._storage.save_tournament(tournament, expected_version=loaded_version)
        match = tournament.find_match(match_id)
        winner_slot = match.winner_slot() if match is not None else None
        log.info("Match %s won by %s", match_id, winner_id)
        self._publish(
            broadcast.TOURNAMENT_UPDATED,
            {
                "tournamentId": tournament.tournament_id,
                "matchId": match_id,
                "winnerId": winner_id,
                "winnerName": winner_slot.display_name if winner_slot else None,
                "isCompleted": tournament.status == "completed",
                "tournament": tournament.to_dict(),
            },
        )
        self._announce_champion(tournament)
        return tournament

    def reset(self) -> Tournament | None:
        with self._lock:
            tournament = self._storage.get_active_tournament()
            if tournament is not None and tournament.is_active:
                loaded_version = tournament.version
                cancel(tournament)
                self._storage.save_tournament(
                    tournament, expected_version=loaded_version
                )
                log.info("Cancelled tournament %s", tournament.tournament_id)
            self._storage.clear_active()
        self._publish(broadcast.TOURNAMENT_RESET)
        return tournament

    # ----- Quiz duels -----
    def set_round_questions(
        self, tournament_id: str, round_number: int, questions: object
    ) -> Round:
        validated = validate_round_questions(questions)
        with self._lock:
            tournament = self._require_tournament(tournament_id)
            round_ = self._require_round(tournament, round_number)
            loaded_version = tournament.version
            round_.questions = validated
            tournament.touch()
            self._storage.save_tournament(tournament, expected_version=loaded_version)
        log.info(
            "Stored %s questions for round %s of tournament %s",
            len(validated),
            round_number,
            tournament_id,
        )
        self._publish(
            broadcast.QUESTIONS_UPDATED,
            {
                "tournamentId": tournament_id,
                "roundNumber": round_number,
                "questions": [question.public_dict() for question in validated],
            },
        )
        return round_

    def start_question_phase(self, round_number: int, match_id: str) -> Match:
        with self._lock:
            tournament = self._require_current()
            round_ = self._require_round(tournament, round_number)
            if not round_.questions:
                raise IllegalStateTransition(
                    f"Round {round_number} has no questions configured"
                )
            self._require_match_in_round(round_, match_id)
            loaded_version = tournament.version
            match = open_question_phase(tournament, match_id)
            self._storage.save_tournament(tournament, expected_version=loaded_version)
        self._publish(
            broadcast.QUESTION_PHASE_STARTED,
            {
                "tournamentId": tournament.tournament_id,
                "roundNumber": round_number,
                "matchId": match.match_id,
                "participant1Id": match.slot_a.participant_id,
                "participant2Id": match.slot_b.participant_id,
                "questions": [question.public_dict() for question in round_.questions],
            },
        )
        return match

    def submit_answers(
        self,
        tournament_id: str,
        round_number: int,
        match_id: str,
        participant_id: str,
        answers: object,
    ) -> AnswerOutcome:
        submitted = validate_answers(answers)
        with self._lock:
            tournament = self._require_tournament(tournament_id)
            round_ = self._require_round(tournament, round_number)
            match = self._require_match_in_round(round_, match_id)
            if match.status != "questions_active":
                raise IllegalStateTransition(
                    f"Match {match_id} is not in its question phase ({match.status})"
                )
            if match.slot_for(participant_id) is None:
                raise InvalidAnswer(
                    f"{participant_id} is not a participant of match {match_id}"
                )
            submissions = self._storage.list_match_answers(
                tournament_id, round_number, match_id
            )
            if participant_id in submissions:
                # A stored pair with an undecided match means the deciding
                # save failed; decide again from the stored answers.
                if not _all_submitted(match, submissions):
                    raise InvalidAnswer(
                        "Answers for this match were already submitted"
                    )
                log.info("Retrying decision for match %s", match_id)
            else:
                graded = grade_answers(round_.questions, submitted)
                self._storage.save_answers(
                    MatchAnswers(
                        tournament_id=tournament_id,
                        round_number=round_number,
                        match_id=match_id,
                        participant_id=participant_id,
                        answers=graded,
                        submitted_at=utc_now_iso(),
                    )
                )
                self._publish(
                    broadcast.ANSWERS_SUBMITTED,
                    {
                        "tournamentId": tournament_id,
                        "roundNumber": round_number,
                        "matchId": match_id,
                        "participantId": participant_id,
                    },
                )
                submissions = self._storage.list_match_answers(
                    tournament_id, round_number, match_id
                )
                if not _all_submitted(match, submissions):
                    return AnswerOutcome(waiting_for_opponent=True)

            winner_id, loser_id, score_a, score_b = decide_winner(match, submissions)
            loaded_version = tournament.version
            record_winner(tournament, match_id, winner_id)
            self._storage.save_tournament(tournament, expected_version=loaded_version)

        log.info("Quiz duel %s decided for %s", match_id, winner_id)
        self._publish(
            broadcast.MATCH_COMPLETED,
            {
                "tournamentId": tournament_id,
                "roundNumber": round_number,
                "matchId": match_id,
                "winnerId": winner_id,
                "loserId": loser_id,
                "score1": score_a.to_dict(),
                "score2": score_b.to_dict(),
            },
        )
        self._announce_champion(tournament)
        return AnswerOutcome(
            waiting_for_opponent=False,
            winner_id=winner_id,
            loser_id=loser_id,
            scores=[score_a, score_b],
            tournament_over=tournament.status == "completed",
        )

    # ----- Internals -----
    def _require_current(self) -> Tournament:
        tournament = self._storage.get_active_tournament()
        if tournament is None:
            raise NoActiveTournament("No tournament is running")
        return tournament

    def _require_tournament(self, tournament_id: str) -> Tournament:
        tournament = self._storage.get_tournament(tournament_id)
        if tournament is None:
            raise NoActiveTournament(f"Tournament {tournament_id} not found")
        if not tournament.is_active:
            raise TournamentNotActive(
                f"Tournament {tournament_id} is {tournament.status}"
            )
        return tournament

    @staticmethod
    def _require_round(tournament: Tournament, round_number: int) -> Round:
        round_ = tournament.find_round(round_number)
        if round_ is None:
            raise RoundNotFound(f"Round {round_number} not found")
        return round_

    @staticmethod
    def _require_match_in_round(round_: Round, match_id: str) -> Match:
        for match in round_.matches:
            if match.match_id == match_id:
                return match
        raise MatchNotFound(
            f"Match {match_id} not found in round {round_.round_number}"
        )

    def _announce_champion(self, tournament: Tournament) -> None:
        if tournament.status != "completed" or tournament.champion is None:
            return
        log.info(
            "Tournament %s won by %s",
            tournament.tournament_id,
            tournament.champion.display_name,
        )
        self._publish(
            broadcast.TOURNAMENT_COMPLETED,
            {
                "tournamentId": tournament.tournament_id,
                "winnerId": tournament.champion.participant_id,
                "champion": tournament.champion.to_dict(),
            },
        )

    def _publish(self, event: str, payload: dict[str, object] | None = None) -> None:
        try:
            self._broadcaster.emit(event, payload)
        except Exception as exc:  # pylint: disable=broad-except
            log.warning("Failed to broadcast %s: %s", event, exc)


__all__ = ["AnswerOutcome", "TournamentService"]
