from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from .errors import InvalidAnswer, InvalidQuestion
from .models import AnswerSubmission, Match, MatchAnswers, RoundQuestion

MIN_QUESTIONS_PER_ROUND = 1
MAX_QUESTIONS_PER_ROUND = 5

log = logging.getLogger("live-tournament")


def validate_round_questions(raw: object) -> list[RoundQuestion]:
    """Validate admin-supplied questions and give each one a fresh id."""
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
        raise InvalidQuestion("Questions must be provided as a list")
    if not MIN_QUESTIONS_PER_ROUND <= len(raw) <= MAX_QUESTIONS_PER_ROUND:
        raise InvalidQuestion(
            f"Provide between {MIN_QUESTIONS_PER_ROUND} and "
            f"{MAX_QUESTIONS_PER_ROUND} questions"
        )
    questions: list[RoundQuestion] = []
    for entry in raw:
        if not isinstance(entry, Mapping):
            raise InvalidQuestion("Each question must be an object")
        content = entry.get("content")
        options = entry.get("options")
        correct = entry.get("correct_option")
        if not isinstance(content, str) or not content.strip():
            raise InvalidQuestion("Each question needs text content")
        if not isinstance(options, Mapping) or not options:
            raise InvalidQuestion(f"Question '{content}' needs an options object")
        if not isinstance(correct, str) or not correct:
            raise InvalidQuestion(f"Question '{content}' needs a correct_option")
        if correct not in options:
            raise InvalidQuestion(
                f"Correct option '{correct}' is not one of the options of '{content}'"
            )
        questions.append(
            RoundQuestion(
                question_id=uuid.uuid4().hex,
                content=content.strip(),
                options={str(key): str(value) for key, value in options.items()},
                correct_option=correct,
            )
        )
    return questions


def validate_answers(raw: object) -> list[AnswerSubmission]:
    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)) or not raw:
        raise InvalidAnswer("At least one answer is required")
    answers: list[AnswerSubmission] = []
    seen: set[str] = set()
    for entry in raw:
        if not isinstance(entry, Mapping):
            raise InvalidAnswer("Each answer must be an object")
        question_id = entry.get("question_id")
        selected = entry.get("selected_option")
        time_taken = entry.get("time_taken_ms")
        if not isinstance(question_id, str) or not question_id:
            raise InvalidAnswer("Each answer needs a question_id")
        if not isinstance(selected, str) or not selected:
            raise InvalidAnswer("Each answer needs a selected_option")
        if (
            isinstance(time_taken, bool)
            or not isinstance(time_taken, (int, float))
            or time_taken < 0
        ):
            raise InvalidAnswer("time_taken_ms must be a non-negative number")
        if isinstance(time_taken, float) and not time_taken.is_integer():
            raise InvalidAnswer("time_taken_ms must be a whole number of milliseconds")
        if question_id in seen:
            raise InvalidAnswer(f"Duplicate answer for question {question_id}")
        seen.add(question_id)
        answers.append(
            AnswerSubmission(
                question_id=question_id,
                selected_option=selected,
                time_taken_ms=int(time_taken),
            )
        )
    return answers


def grade_answers(
    questions: Sequence[RoundQuestion], answers: Iterable[AnswerSubmission]
) -> list[AnswerSubmission]:
    """Mark each answer correct or not, dropping answers to unknown questions."""
    by_id = {question.question_id: question for question in questions}
    graded: list[AnswerSubmission] = []
    for answer in answers:
        question = by_id.get(answer.question_id)
        if question is None:
            log.warning("Ignoring answer for unknown question %s", answer.question_id)
            continue
        answer.is_correct = answer.selected_option == question.correct_option
        graded.append(answer)
    if not graded:
        raise InvalidAnswer("No answer matched a question of this round")
    return graded


@dataclass(slots=True, frozen=True)
class MatchScore:
    participant_id: str
    correct_count: int
    total_time_ms: int

    def to_dict(self) -> dict[str, object]:
        return {
            "participantId": self.participant_id,
            "correctCount": self.correct_count,
            "totalTime": self.total_time_ms,
        }


def score_submission(
    participant_id: str, submission: MatchAnswers | None
) -> MatchScore:
    """Count correct answers; only correct answers contribute to the time."""
    correct = 0
    total_time = 0
    if submission is not None:
        for answer in submission.answers:
            if answer.is_correct:
                correct += 1
                total_time += answer.time_taken_ms
    return MatchScore(participant_id, correct, total_time)


def decide_winner(
    match: Match, submissions: Mapping[str, MatchAnswers]
) -> tuple[str, str, MatchScore, MatchScore]:
    """Return (winner_id, loser_id, score_a, score_b) for a quiz duel.

    More correct answers wins, then the lower time spent on correct answers.
    A full tie goes to the participant in slot A.
    """
    first = match.slot_a.participant_id
    second = match.slot_b.participant_id
    if first is None or second is None:
        raise InvalidAnswer(f"Match {match.match_id} does not have two participants")
    score_a = score_submission(first, submissions.get(first))
    score_b = score_submission(second, submissions.get(second))
    if score_a.correct_count != score_b.correct_count:
        a_wins = score_a.correct_count > score_b.correct_count
    elif score_a.total_time_ms != score_b.total_time_ms:
        a_wins = score_a.total_time_ms < score_b.total_time_ms
    else:
        log.info(
            "Full tie in match %s; %s advances by slot order", match.match_id, first
        )
        a_wins = True
    if a_wins:
        return first, second, score_a, score_b
    return second, first, score_a, score_b


__all__ = [
    "MIN_QUESTIONS_PER_ROUND",
    "MAX_QUESTIONS_PER_ROUND",
    "MatchScore",
    "validate_round_questions",
    "validate_answers",
    "grade_answers",
    "score_submission",
    "decide_winner",
]
