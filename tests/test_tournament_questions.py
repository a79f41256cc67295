import pytest

from live_tournament import InvalidAnswer, InvalidQuestion, create_bracket
from live_tournament.models import AnswerSubmission, MatchAnswers, RoundQuestion
from live_tournament.questions import (
    decide_winner,
    grade_answers,
    score_submission,
    validate_answers,
    validate_round_questions,
)


def raw_question(content="2 + 2?", correct="b"):
    return {
        "content": content,
        "options": {"a": "3", "b": "4"},
        "correct_option": correct,
    }


def submission(participant_id, answers):
    return MatchAnswers(
        tournament_id="t1",
        round_number=1,
        match_id="m1",
        participant_id=participant_id,
        answers=[
            AnswerSubmission(
                question_id=f"q{index}",
                selected_option="x",
                time_taken_ms=time_taken,
                is_correct=correct,
            )
            for index, (correct, time_taken) in enumerate(answers, start=1)
        ],
        submitted_at="2024-01-01T00:00:00.000Z",
    )


def test_validate_round_questions_assigns_fresh_ids():
    questions = validate_round_questions([raw_question(), raw_question("Capital?")])

    assert [question.content for question in questions] == ["2 + 2?", "Capital?"]
    assert questions[0].question_id
    assert questions[0].question_id != questions[1].question_id
    assert questions[0].correct_option == "b"


@pytest.mark.parametrize(
    "raw",
    [
        [],
        [raw_question()] * 6,
        "not a list",
        [{"content": "", "options": {"a": "1"}, "correct_option": "a"}],
        [{"content": "Q", "options": {}, "correct_option": "a"}],
        [{"content": "Q", "options": {"a": "1"}}],
        [raw_question(correct="z")],
        ["not an object"],
    ],
)
def test_validate_round_questions_rejects_invalid_input(raw):
    with pytest.raises(InvalidQuestion):
        validate_round_questions(raw)


def test_validate_answers_accepts_well_formed_answers():
    answers = validate_answers(
        [{"question_id": "q1", "selected_option": "a", "time_taken_ms": 1500}]
    )
    assert answers == [AnswerSubmission("q1", "a", 1500)]


def test_validate_answers_accepts_whole_float_milliseconds():
    answers = validate_answers(
        [{"question_id": "q1", "selected_option": "a", "time_taken_ms": 250.0}]
    )
    assert answers[0].time_taken_ms == 250


@pytest.mark.parametrize(
    "raw",
    [
        [],
        None,
        [{"question_id": "", "selected_option": "a", "time_taken_ms": 1}],
        [{"question_id": "q1", "selected_option": 3, "time_taken_ms": 1}],
        [{"question_id": "q1", "selected_option": "a", "time_taken_ms": -1}],
        [{"question_id": "q1", "selected_option": "a", "time_taken_ms": True}],
        [{"question_id": "q1", "selected_option": "a", "time_taken_ms": 100.9}],
        [
            {"question_id": "q1", "selected_option": "a", "time_taken_ms": 1},
            {"question_id": "q1", "selected_option": "b", "time_taken_ms": 2},
        ],
    ],
)
def test_validate_answers_rejects_invalid_input(raw):
    with pytest.raises(InvalidAnswer):
        validate_answers(raw)


def test_grade_answers_marks_correctness_and_drops_unknown_questions():
    questions = [RoundQuestion("q1", "2 + 2?", {"a": "3", "b": "4"}, "b")]
    answers = [AnswerSubmission("q1", "b", 900), AnswerSubmission("q9", "a", 100)]

    graded = grade_answers(questions, answers)

    assert [(answer.question_id, answer.is_correct) for answer in graded] == [
        ("q1", True)
    ]


def test_grade_answers_requires_one_known_question():
    questions = [RoundQuestion("q1", "2 + 2?", {"a": "3", "b": "4"}, "b")]
    with pytest.raises(InvalidAnswer):
        grade_answers(questions, [AnswerSubmission("q9", "a", 100)])


def test_score_counts_time_of_correct_answers_only():
    answers = submission("p1", [(True, 1000), (False, 50), (True, 500)])
    score = score_submission("p1", answers)
    assert (score.correct_count, score.total_time_ms) == (2, 1500)
    assert score_submission("p2", None).correct_count == 0


def test_decide_winner_prefers_more_correct_answers():
    match = create_bracket(["p1", "p2"]).final_match()
    submissions = {
        "p1": submission("p1", [(True, 9000), (False, 10)]),
        "p2": submission("p2", [(True, 100), (True, 100)]),
    }

    winner, loser, score_a, score_b = decide_winner(match, submissions)

    assert (winner, loser) == ("p2", "p1")
    assert score_a.participant_id == "p1"
    assert score_b.correct_count == 2


def test_decide_winner_breaks_ties_on_time():
    match = create_bracket(["p1", "p2"]).final_match()
    submissions = {
        "p1": submission("p1", [(True, 900)]),
        "p2": submission("p2", [(True, 400)]),
    }
    assert decide_winner(match, submissions)[:2] == ("p2", "p1")


def test_decide_winner_full_tie_goes_to_slot_a():
    match = create_bracket(["p1", "p2"]).final_match()
    submissions = {
        "p1": submission("p1", [(True, 400)]),
        "p2": submission("p2", [(True, 400)]),
    }
    assert decide_winner(match, submissions)[:2] == ("p1", "p2")


def test_decide_winner_needs_two_participants():
    match = create_bracket(["p1", "p2", "p3", "p4"]).final_match()
    with pytest.raises(InvalidAnswer):
        decide_winner(match, {})
