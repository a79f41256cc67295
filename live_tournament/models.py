from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import ClassVar, Literal

ISO_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

MatchStatus = Literal["pending", "in_progress", "questions_active", "completed"]
TournamentStatus = Literal["not_started", "active", "completed", "cancelled"]

TOURNAMENT_STATUSES: tuple[str, ...] = (
    "not_started",
    "active",
    "completed",
    "cancelled",
)
TERMINAL_STATUSES: frozenset[str] = frozenset({"completed", "cancelled"})


def utc_now_iso() -> str:
    """Return current UTC timestamp in ISO-8601 format (ms precision)."""
    return datetime.now(UTC).strftime(ISO_FORMAT)


def _optional_str(value: object) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


@dataclass(slots=True)
class Participant:
    participant_id: str
    name: str
    tournament_name: str | None = None
    avatar_token: str | None = None

    PK_TEMPLATE: ClassVar[str] = "PARTICIPANT#%s"
    SK_VALUE: ClassVar[str] = "PROFILE"

    @property
    def display_name(self) -> str:
        return self.tournament_name or self.name or self.participant_id

    @classmethod
    def key(cls, participant_id: str) -> dict[str, str]:
        return {"pk": cls.PK_TEMPLATE % participant_id, "sk": cls.SK_VALUE}

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {"id": self.participant_id, "name": self.name}
        if self.tournament_name is not None:
            data["tournamentName"] = self.tournament_name
        if self.avatar_token is not None:
            data["avatar"] = self.avatar_token
        return data

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Participant:
        return cls(
            participant_id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            tournament_name=_optional_str(data.get("tournamentName")),
            avatar_token=_optional_str(data.get("avatar")),
        )

    def to_item(self) -> dict[str, object]:
        item: dict[str, object] = self.key(self.participant_id)
        item.update(self.to_dict())
        return item

    @classmethod
    def from_item(cls, item: dict[str, object]) -> Participant:
        data = dict(item)
        if not data.get("id"):
            data["id"] = str(item["pk"]).split("#", 1)[1]
        return cls.from_dict(data)


@dataclass(slots=True)
class MatchSlot:
    participant_id: str | None = None
    display_name: str | None = None
    avatar: str | None = None

    @property
    def filled(self) -> bool:
        return self.participant_id is not None

    def seat(self, participant_id: str, display_name: str, avatar: str | None) -> None:
        self.participant_id = participant_id
        self.display_name = display_name
        self.avatar = avatar

    def adopt_from(self, other: MatchSlot) -> None:
        self.seat(
            str(other.participant_id),
            other.display_name or str(other.participant_id),
            other.avatar,
        )

    def display(self) -> str:
        if self.participant_id is None:
            return "TBD"
        label = self.display_name or self.participant_id
        if self.avatar:
            return f"{self.avatar} {label}"
        return label

    def as_participant(self) -> Participant:
        if self.participant_id is None:
            raise ValueError("Empty slot has no participant")
        return Participant(
            participant_id=self.participant_id,
            name=self.display_name or self.participant_id,
            tournament_name=self.display_name,
            avatar_token=self.avatar,
        )


@dataclass(slots=True)
class RoundQuestion:
    question_id: str
    content: str
    options: dict[str, str]
    correct_option: str

    def to_dict(self) -> dict[str, object]:
        return {
            "questionId": self.question_id,
            "content": self.content,
            "options": dict(self.options),
            "correctOption": self.correct_option,
        }

    def public_dict(self) -> dict[str, object]:
        """Question payload without the answer key."""
        return {
            "questionId": self.question_id,
            "content": self.content,
            "options": dict(self.options),
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> RoundQuestion:
        options = data.get("options") or {}
        return cls(
            question_id=str(data.get("questionId", "")),
            content=str(data.get("content", "")),
            options={str(k): str(v) for k, v in dict(options).items()},  # type: ignore[call-overload]
            correct_option=str(data.get("correctOption", "")),
        )


@dataclass(slots=True)
class Match:
    match_id: str
    match_number: int
    round_number: int
    slot_a: MatchSlot = field(default_factory=MatchSlot)
    slot_b: MatchSlot = field(default_factory=MatchSlot)
    winner_id: str | None = None
    next_match_id: str | None = None
    questions_open: bool = False

    @property
    def status(self) -> MatchStatus:
        if self.winner_id is not None:
            return "completed"
        if not (self.slot_a.filled and self.slot_b.filled):
            return "pending"
        if self.questions_open:
            return "questions_active"
        return "in_progress"

    @property
    def is_final(self) -> bool:
        return self.next_match_id is None

    def slots(self) -> tuple[MatchSlot, MatchSlot]:
        return (self.slot_a, self.slot_b)

    def participant_ids(self) -> list[str]:
        return [
            slot.participant_id for slot in self.slots() if slot.participant_id
        ]

    def slot_for(self, participant_id: str) -> MatchSlot | None:
        for slot in self.slots():
            if slot.filled and slot.participant_id == participant_id:
                return slot
        return None

    def winner_slot(self) -> MatchSlot | None:
        if self.winner_id is None:
            return None
        return self.slot_for(self.winner_id)

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "matchId": self.match_id,
            "matchNumber": self.match_number,
            "roundNumber": self.round_number,
            "status": self.status,
        }
        for index, slot in ((1, self.slot_a), (2, self.slot_b)):
            if slot.participant_id is None:
                continue
            data[f"participant{index}Id"] = slot.participant_id
            if slot.display_name is not None:
                data[f"participant{index}Name"] = slot.display_name
            if slot.avatar is not None:
                data[f"participant{index}Avatar"] = slot.avatar
        if self.winner_id is not None:
            data["winnerId"] = self.winner_id
        if self.next_match_id is not None:
            data["nextMatchId"] = self.next_match_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Match:
        slots: list[MatchSlot] = []
        for index in (1, 2):
            slots.append(
                MatchSlot(
                    participant_id=_optional_str(data.get(f"participant{index}Id")),
                    display_name=_optional_str(data.get(f"participant{index}Name")),
                    avatar=_optional_str(data.get(f"participant{index}Avatar")),
                )
            )
        winner_id = _optional_str(data.get("winnerId"))
        return cls(
            match_id=str(data.get("matchId", "")),
            match_number=int(data.get("matchNumber", 0)),  # type: ignore[call-overload]
            round_number=int(data.get("roundNumber", 0)),  # type: ignore[call-overload]
            slot_a=slots[0],
            slot_b=slots[1],
            winner_id=winner_id,
            next_match_id=_optional_str(data.get("nextMatchId")),
            questions_open=(
                winner_id is None and data.get("status") == "questions_active"
            ),
        )


@dataclass(slots=True)
class Round:
    round_number: int
    matches: list[Match]
    questions: list[RoundQuestion] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "roundNumber": self.round_number,
            "matches": [match.to_dict() for match in self.matches],
        }
        if self.questions:
            data["questions"] = [question.to_dict() for question in self.questions]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Round:
        matches_data: Iterable[dict[str, object]] = data.get("matches", [])  # type: ignore[assignment]
        questions_data: Iterable[dict[str, object]] = data.get("questions", [])  # type: ignore[assignment]
        round_number = int(data.get("roundNumber", 0))  # type: ignore[call-overload]
        matches = [Match.from_dict(item) for item in matches_data]
        for match in matches:
            if not match.round_number:
                match.round_number = round_number
        matches.sort(key=lambda match: match.match_number)
        return cls(
            round_number=round_number,
            matches=matches,
            questions=[RoundQuestion.from_dict(item) for item in questions_data],
        )

    def is_complete(self) -> bool:
        return all(match.winner_id is not None for match in self.matches)


@dataclass(slots=True)
class Tournament:
    tournament_id: str
    status: TournamentStatus
    rounds: list[Round]
    participant_ids: list[str]
    created_at: str
    updated_at: str
    champion: Participant | None = None
    version: int = 0

    PK_TEMPLATE: ClassVar[str] = "TOURNAMENT#%s"
    SK_VALUE: ClassVar[str] = "STATE"

    @classmethod
    def key(cls, tournament_id: str) -> dict[str, str]:
        return {"pk": cls.PK_TEMPLATE % tournament_id, "sk": cls.SK_VALUE}

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def to_dict(self) -> dict[str, object]:
        """Client-facing document, the shape broadcast to connected clients."""
        return {
            "tournamentId": self.tournament_id,
            "status": self.status,
            "participantIds": list(self.participant_ids),
            "rounds": [round_.to_dict() for round_ in self.rounds],
            "champion": self.champion.to_dict() if self.champion else None,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def to_item(self) -> dict[str, object]:
        item: dict[str, object] = self.key(self.tournament_id)
        item.update(self.to_dict())
        item["version"] = self.version
        return item

    @classmethod
    def from_item(cls, item: dict[str, object]) -> Tournament:
        tournament_id = item.get("tournamentId") or str(item["pk"]).split("#", 1)[1]
        rounds_data: Iterable[dict[str, object]] = item.get("rounds", [])  # type: ignore[assignment]
        rounds = [Round.from_dict(round_item) for round_item in rounds_data]
        rounds.sort(key=lambda round_: round_.round_number)
        status = str(item.get("status", "not_started"))
        if status not in TOURNAMENT_STATUSES:
            raise ValueError(f"Unknown tournament status: {status}")
        champion_data = item.get("champion")
        return cls(
            tournament_id=str(tournament_id),
            status=status,  # type: ignore[arg-type]
            rounds=rounds,
            participant_ids=[str(pid) for pid in item.get("participantIds", [])],  # type: ignore[union-attr]
            created_at=str(item.get("createdAt", "")),
            updated_at=str(item.get("updatedAt", "")),
            champion=(
                Participant.from_dict(champion_data)  # type: ignore[arg-type]
                if isinstance(champion_data, dict)
                else None
            ),
            version=int(item.get("version", 0)),  # type: ignore[call-overload]
        )

    def clone(self) -> Tournament:
        return Tournament.from_item(self.to_item())

    def touch(self) -> None:
        self.updated_at = utc_now_iso()
        self.version += 1

    def find_match(self, match_id: str) -> Match | None:
        for match in self.all_matches():
            if match.match_id == match_id:
                return match
        return None

    def find_round(self, round_number: int) -> Round | None:
        for round_ in self.rounds:
            if round_.round_number == round_number:
                return round_
        return None

    def all_matches(self) -> Iterable[Match]:
        for round_ in self.rounds:
            yield from round_.matches

    def final_match(self) -> Match | None:
        if not self.rounds or not self.rounds[-1].matches:
            return None
        return self.rounds[-1].matches[-1]


@dataclass(slots=True)
class AnswerSubmission:
    question_id: str
    selected_option: str
    time_taken_ms: int
    is_correct: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "questionId": self.question_id,
            "answer": self.selected_option,
            "timeTakenMs": self.time_taken_ms,
            "isCorrect": self.is_correct,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> AnswerSubmission:
        return cls(
            question_id=str(data.get("questionId", "")),
            selected_option=str(data.get("answer", "")),
            time_taken_ms=int(data.get("timeTakenMs", 0)),  # type: ignore[call-overload]
            is_correct=bool(data.get("isCorrect", False)),
        )


@dataclass(slots=True)
class MatchAnswers:
    """All answers one participant submitted for one match."""

    tournament_id: str
    round_number: int
    match_id: str
    participant_id: str
    answers: list[AnswerSubmission]
    submitted_at: str

    PK_TEMPLATE: ClassVar[str] = "TOURNAMENT#%s"
    SK_TEMPLATE: ClassVar[str] = "ANSWERS#%s#%s#%s"

    @classmethod
    def key(
        cls, tournament_id: str, round_number: int, match_id: str, participant_id: str
    ) -> dict[str, str]:
        return {
            "pk": cls.PK_TEMPLATE % tournament_id,
            "sk": cls.SK_TEMPLATE % (round_number, match_id, participant_id),
        }

    @classmethod
    def match_prefix(cls, round_number: int, match_id: str) -> str:
        return f"ANSWERS#{round_number}#{match_id}#"

    def to_item(self) -> dict[str, object]:
        item: dict[str, object] = self.key(
            self.tournament_id, self.round_number, self.match_id, self.participant_id
        )
        item.update(
            {
                "tournamentId": self.tournament_id,
                "roundNumber": self.round_number,
                "matchId": self.match_id,
                "participantId": self.participant_id,
                "answers": [answer.to_dict() for answer in self.answers],
                "submittedAt": self.submitted_at,
            }
        )
        return item

    @classmethod
    def from_item(cls, item: dict[str, object]) -> MatchAnswers:
        answers_data: Iterable[dict[str, object]] = item.get("answers", [])  # type: ignore[assignment]
        return cls(
            tournament_id=str(item.get("tournamentId", "")),
            round_number=int(item.get("roundNumber", 0)),  # type: ignore[call-overload]
            match_id=str(item.get("matchId", "")),
            participant_id=str(item.get("participantId", "")),
            answers=[AnswerSubmission.from_dict(data) for data in answers_data],
            submitted_at=str(item.get("submittedAt", "")),
        )


__all__ = [
    "ISO_FORMAT",
    "MatchStatus",
    "TournamentStatus",
    "TERMINAL_STATUSES",
    "Participant",
    "MatchSlot",
    "RoundQuestion",
    "Match",
    "Round",
    "Tournament",
    "AnswerSubmission",
    "MatchAnswers",
    "utc_now_iso",
]
