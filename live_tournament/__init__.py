"""Live-audience single-elimination tournament engine."""

from .bracket import cancel, create_bracket, record_winner
from .errors import (
    BracketError,
    ConcurrentModification,
    IllegalStateTransition,
    InvalidAnswer,
    InvalidParticipantCount,
    InvalidQuestion,
    InvalidWinner,
    MatchNotFound,
    NoActiveTournament,
    RoundNotFound,
    TournamentNotActive,
    UnknownParticipant,
)
from .models import (
    Match,
    MatchSlot,
    Participant,
    Round,
    RoundQuestion,
    Tournament,
    utc_now_iso,
)
from .storage import TournamentStorage

__all__ = [
    "cancel",
    "create_bracket",
    "record_winner",
    "BracketError",
    "ConcurrentModification",
    "IllegalStateTransition",
    "InvalidAnswer",
    "InvalidParticipantCount",
    "InvalidQuestion",
    "InvalidWinner",
    "MatchNotFound",
    "NoActiveTournament",
    "RoundNotFound",
    "TournamentNotActive",
    "UnknownParticipant",
    "Match",
    "MatchSlot",
    "Participant",
    "Round",
    "RoundQuestion",
    "Tournament",
    "utc_now_iso",
    "TournamentStorage",
]
