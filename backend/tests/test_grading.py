"""
Quiz Platform - Grading Tests
"""
import uuid
from types import SimpleNamespace

import pytest

from app.core.exceptions import InvalidInputError
from app.services.grading import grade_answers


def make_question(marks: int, correct_index: int = 1):
    return SimpleNamespace(id=uuid.uuid4(), marks=marks, correct_index=correct_index)


def answer(question_id, selected: int, seconds: int = 10) -> dict:
    return {"questionId": str(question_id), "selectedIndex": selected, "timeTakenSeconds": seconds}


def test_score_is_sum_of_marks_for_correct_answers():
    q1, q2, q3 = make_question(5), make_question(3), make_question(2)
    result = grade_answers(
        [answer(q1.id, 1), answer(q2.id, 0), answer(q3.id, 1)],
        [q1, q2, q3],
    )
    assert result.score == 7
    assert result.correct_count == 2
    assert [r["isCorrect"] for r in result.answer_results] == [True, False, True]


def test_unknown_question_is_incorrect_not_an_error():
    q1 = make_question(4)
    stray = uuid.uuid4()
    result = grade_answers([answer(q1.id, 1), answer(stray, 1), answer("not-a-uuid", 0)], [q1])

    assert result.score == 4
    assert result.answer_results[1] == {"questionId": str(stray), "isCorrect": False}
    assert result.answer_results[2] == {"questionId": "not-a-uuid", "isCorrect": False}


def test_unanswered_questions_score_zero():
    q1, q2 = make_question(5), make_question(3)
    result = grade_answers([answer(q2.id, 1)], [q1, q2])
    assert result.score == 3
    assert len(result.answers) == 1


def test_answers_are_echoed_in_stored_shape():
    q1 = make_question(1)
    result = grade_answers([{"questionId": str(q1.id).upper(), "selectedIndex": 1}], [q1])
    assert result.answers == [{"questionId": str(q1.id), "selectedIndex": 1, "timeTakenSeconds": 0}]


def test_duplicate_answers_are_rejected():
    q1 = make_question(1)
    with pytest.raises(InvalidInputError) as exc_info:
        grade_answers([answer(q1.id, 1), answer(q1.id, 0)], [q1])
    assert exc_info.value.code == "DUPLICATE_ANSWER"


def test_empty_submission():
    result = grade_answers([], [make_question(2)])
    assert result.score == 0
    assert result.answer_results == []
