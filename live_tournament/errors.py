from __future__ import annotations


class BracketError(ValueError):
    """Base exception for tournament engine failures."""

    code = "bracket_error"


class InvalidParticipantCount(BracketError):
    """Raised when the participant list cannot form a balanced bracket."""

    code = "invalid_participant_count"


class UnknownParticipant(InvalidParticipantCount):
    """Raised when a participant id has no stored profile."""

    code = "unknown_participant"


class MatchNotFound(BracketError):
    code = "match_not_found"


class RoundNotFound(MatchNotFound):
    code = "round_not_found"


class InvalidWinner(BracketError):
    """Raised when the winner is not one of the two seated participants."""

    code = "invalid_winner"


class IllegalStateTransition(BracketError):
    code = "illegal_state_transition"


class TournamentNotActive(IllegalStateTransition):
    """Raised when mutating a tournament that is completed or cancelled."""

    code = "tournament_not_active"


class NoActiveTournament(TournamentNotActive):
    code = "no_active_tournament"


class ConcurrentModification(BracketError):
    """Raised when a stored tournament changed since it was loaded."""

    code = "concurrent_modification"


class InvalidQuestion(BracketError):
    code = "invalid_question"


class InvalidAnswer(BracketError):
    code = "invalid_answer"


__all__ = [
    "BracketError",
    "InvalidParticipantCount",
    "UnknownParticipant",
    "MatchNotFound",
    "RoundNotFound",
    "InvalidWinner",
    "IllegalStateTransition",
    "TournamentNotActive",
    "NoActiveTournament",
    "ConcurrentModification",
    "InvalidQuestion",
    "InvalidAnswer",
]
